"""API routers for the Interview Coach backend."""

from interview_coach.routers.interview import router as interview_router

__all__ = [
    "interview_router",
]
