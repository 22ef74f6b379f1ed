from studybuddy.routes.users import router as users_router
from studybuddy.routes.streak import router as streak_router
from studybuddy.routes.gamification import router as gamification_router
from studybuddy.routes.tasks import router as tasks_router

__all__ = ["users_router", "streak_router", "gamification_router", "tasks_router"]
