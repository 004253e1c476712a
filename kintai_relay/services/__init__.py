"""Service layer exports."""

from .attendance import AttendanceService
from .employee_matching import EmployeeResolver
from .scheduled import ChannelNotifier, ScheduledJobs
from .token_cipher import TokenCipherService
from .token_manager import FreeeTokenManager

__all__ = [
    "AttendanceService",
    "ChannelNotifier",
    "EmployeeResolver",
    "FreeeTokenManager",
    "ScheduledJobs",
    "TokenCipherService",
]
