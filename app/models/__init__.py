from app.models.member import Member, MemberEmail  # noqa: F401
from app.models.program import Program  # noqa: F401
from app.models.program_membership import ProgramMembership  # noqa: F401
from app.models.program_invite import ProgramInvite  # noqa: F401
from app.models.notification import Notification, NotificationRecipient  # noqa: F401
from app.models.activity_log import WorkoutLog, DailyHealthLog  # noqa: F401
