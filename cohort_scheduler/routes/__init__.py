from . import scheduler, session, teams

__all__ = ["scheduler", "session", "teams"]
