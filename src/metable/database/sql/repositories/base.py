from __future__ import annotations

from datetime import datetime

import pendulum

from metable.database.sql.session import SessionManager


class SQLRepoBase:
    def __init__(self, *, sessions: SessionManager) -> None:
        self._sessions = sessions

    @staticmethod
    def _now() -> datetime:
        return pendulum.now("UTC")


__all__ = ["SQLRepoBase"]
