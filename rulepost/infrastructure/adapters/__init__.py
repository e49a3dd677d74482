"""Infrastructure adapters for Rule Post."""

from rulepost.infrastructure.adapters.system_time_authority import SystemTimeAuthority

__all__: list[str] = ["SystemTimeAuthority"]
