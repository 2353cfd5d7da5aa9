from loandesk.models.models import (
    Bank,
    BankApplication,
    ChatMessage,
    Lead,
    LeadStage,
    Profile,
    RentalStatus,
    SegmentType,
    Team,
    TeamMember,
    UserRole,
)

__all__ = [
    "Bank",
    "BankApplication",
    "ChatMessage",
    "Lead",
    "LeadStage",
    "Profile",
    "RentalStatus",
    "SegmentType",
    "Team",
    "TeamMember",
    "UserRole",
]
