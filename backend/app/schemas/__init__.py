"""Convenience imports for all schema classes used by the API."""

from .user import (
    UserCreate,
    UserResponse,
    UserLogin,
    UserUpdate,
    ProfileUpdate,
    AdminUserCreate,
    PointsAward,
    LeaderboardEntry,
)
from .common import Toast, BadgeRead
from .course import (
    ModuleCreate,
    ModuleRead,
    QuizQuestionCreate,
    QuizQuestionRead,
    QuizQuestionAdminRead,
    ReviewRead,
    CourseCreate,
    CourseUpdate,
    CourseRead,
    CourseAdminRead,
    DiscussionPostCreate,
    DiscussionPostRead,
)
from .progress import (
    ProgressRead,
    ProgressResponse,
    CertificateData,
    QuizSubmission,
    QuizResult,
    RatingCreate,
    RatingResult,
)
from .notification import NotificationRead, AdminMessageCreate
from .resource import ResourceCreate, ResourceRead, ResourceUpdate
from .settings import SettingsRead, SettingsUpdate
from .ai import (
    CourseContentRequest,
    GeneratedCourseContent,
    QuizGenerationRequest,
    GeneratedQuiz,
    AiMessage,
    ChatRequest,
    ChatResponse,
    DiscussionTopics,
)

__all__ = [
    "UserCreate",
    "UserResponse",
    "UserLogin",
    "UserUpdate",
    "ProfileUpdate",
    "AdminUserCreate",
    "PointsAward",
    "LeaderboardEntry",
    "Toast",
    "BadgeRead",
    "ModuleCreate",
    "ModuleRead",
    "QuizQuestionCreate",
    "QuizQuestionRead",
    "QuizQuestionAdminRead",
    "ReviewRead",
    "CourseCreate",
    "CourseUpdate",
    "CourseRead",
    "CourseAdminRead",
    "DiscussionPostCreate",
    "DiscussionPostRead",
    "ProgressRead",
    "ProgressResponse",
    "CertificateData",
    "QuizSubmission",
    "QuizResult",
    "RatingCreate",
    "RatingResult",
    "NotificationRead",
    "AdminMessageCreate",
    "ResourceCreate",
    "ResourceRead",
    "ResourceUpdate",
    "SettingsRead",
    "SettingsUpdate",
    "CourseContentRequest",
    "GeneratedCourseContent",
    "QuizGenerationRequest",
    "GeneratedQuiz",
    "AiMessage",
    "ChatRequest",
    "ChatResponse",
    "DiscussionTopics",
]
