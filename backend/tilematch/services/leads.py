"""Lead and score collaborators.

Both calls are fire-and-forget from the game's point of view: a database
failure is rolled back and logged, and the caller gets ``None`` instead of an
exception so play is never blocked.
"""
from typing import Any, Mapping, Optional

from flask import current_app

from tilematch import db
from tilematch.models import Lead, ScoreEntry


def submit_lead(user: Mapping[str, Any]) -> Optional[Lead]:
    try:
        lead = Lead(name=str(user['name']).strip(), phone=str(user['phone']).strip())
        db.session.add(lead)
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.warning(f"[lead-failed] {exc}")
        return None
    current_app.logger.info(f"[lead] id={lead.id}")
    return lead


def submit_score(user: Optional[Mapping[str, Any]], score: int, flips_count: int,
                 elapsed_seconds: Optional[int], reason: Optional[str] = None,
                 lead_id: Optional[int] = None) -> Optional[ScoreEntry]:
    user = user or {}
    try:
        entry = ScoreEntry(
            lead_id=lead_id,
            name=user.get('name'),
            phone=user.get('phone'),
            score=int(score),
            flips_count=int(flips_count),
            elapsed_seconds=int(elapsed_seconds) if elapsed_seconds is not None else None,
            reason=reason,
        )
        db.session.add(entry)
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.warning(f"[score-failed] lead={lead_id} score={score} {exc}")
        return None
    current_app.logger.info(
        f"[score] id={entry.id} lead={lead_id} score={entry.score} flips={entry.flips_count} "
        f"elapsed={entry.elapsed_seconds} reason={reason}"
    )
    return entry
