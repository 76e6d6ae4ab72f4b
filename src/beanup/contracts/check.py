"""Health-check report contracts."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class CheckStatus(StrEnum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class CheckResult(BaseModel):
    name: str
    status: CheckStatus
    message: str = ""


class CheckSection(BaseModel):
    name: str
    checks: list[CheckResult] = Field(default_factory=list)

    def add(self, name: str, status: CheckStatus, message: str = "") -> None:
        self.checks.append(CheckResult(name=name, status=status, message=message))


class CheckReport(BaseModel):
    sections: list[CheckSection] = Field(default_factory=list)

    def _count(self, status: CheckStatus) -> int:
        return sum(1 for section in self.sections for check in section.checks if check.status == status)

    @property
    def passed(self) -> int:
        return self._count(CheckStatus.PASS)

    @property
    def warnings(self) -> int:
        return self._count(CheckStatus.WARN)

    @property
    def failed(self) -> int:
        return self._count(CheckStatus.FAIL)
