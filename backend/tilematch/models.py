from datetime import datetime, timezone

from tilematch import db


def _utcnow():
    return datetime.now(timezone.utc)


class Lead(db.Model):
    __tablename__ = 'lead'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    phone = db.Column(db.String(32), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    scores = db.relationship('ScoreEntry', back_populates='lead', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class ScoreEntry(db.Model):
    __tablename__ = 'score_entry'
    id = db.Column(db.Integer, primary_key=True)
    lead_id = db.Column(db.Integer, db.ForeignKey('lead.id'), nullable=True)
    name = db.Column(db.String(128), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    score = db.Column(db.Integer, nullable=False, default=0)
    flips_count = db.Column(db.Integer, nullable=False, default=0)
    elapsed_seconds = db.Column(db.Integer, nullable=True)
    reason = db.Column(db.String(32), nullable=True)  # won, lost_flips, lost_time
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    lead = db.relationship('Lead', back_populates='scores')

    def to_dict(self):
        return {
            'id': self.id,
            'lead_id': self.lead_id,
            'name': self.name,
            'phone': self.phone,
            'score': self.score,
            'flips_count': self.flips_count,
            'elapsed_seconds': self.elapsed_seconds,
            'reason': self.reason,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
