"""Settle-up reminder messages."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from splitledger.domain.groups import group_balances

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import date
    from uuid import UUID

    from splitledger.domain.balances import BalanceLine, MemberSummary
    from splitledger.domain.model import Group, User
    from splitledger.domain.ports.notifications import NotificationSink
    from splitledger.domain.ports.persistence import ExpenseRepository, GroupRepository

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SettleUpMessage:
    to_address: str
    subject: str
    body: str


def _describe(line: BalanceLine, members: Mapping[UUID, User], preposition: str) -> str:
    other = members.get(line.counterparty_id)
    who = f"{other.username} ({other.email})" if other is not None else str(line.counterparty_id)
    return f"   * ${line.amount:.2f} {preposition} {who}"


def build_settle_up_message(
    member: User,
    group: Group,
    summary: MemberSummary,
    *,
    on: date,
) -> SettleUpMessage:
    """Render the balance summary mailed to ``member`` on the group's settle-up day."""

    members = {user.id: user for user in group.all_members}
    lines: list[str] = []
    if summary.is_settled:
        lines.append(f'You are fully settled up in "{group.name}". No balances outstanding.')
    else:
        if summary.owes:
            lines.append("You owe:")
            lines.extend(_describe(line, members, "to") for line in summary.owes)
            lines.append("")
        if summary.owed_by:
            lines.append("You are owed:")
            lines.extend(_describe(line, members, "from") for line in summary.owed_by)
            lines.append("")
        net = summary.net
        if net > 0:
            lines.append(f"Net: you are owed ${net:.2f} overall.")
        elif net < 0:
            lines.append(f"Net: you owe ${abs(net):.2f} overall.")

    body = "\n".join(
        [
            f"Hi {member.username},",
            "",
            f'Today ({on.strftime("%A, %B %d, %Y")}) is the settle-up date for your group '
            f'"{group.name}".',
            "",
            "Here's your balance summary:",
            "",
            *lines,
            "",
            "Open Splitledger to record payments and settle up with your group members.",
        ]
    )
    subject = f'Settle-up day for "{group.name}": your balance summary'
    return SettleUpMessage(to_address=member.email, subject=subject, body=body)


def settle_up_messages(
    group: Group,
    expenses: ExpenseRepository,
    *,
    on: date,
) -> list[SettleUpMessage]:
    """One message per active member; balances include past members."""

    balances = group_balances(group, expenses)
    return [
        build_settle_up_message(member, group, balances.summaries[member.id], on=on)
        for member in group.members
    ]


@dataclass(frozen=True, slots=True)
class SettleUpRunResult:
    groups: int
    sent: int
    failed: int


def send_settle_up_reminders(
    groups: GroupRepository,
    expenses: ExpenseRepository,
    sink: NotificationSink,
    *,
    on: date,
) -> SettleUpRunResult:
    due = list(groups.settling_on(on))
    log.info("Found %d group(s) with settle-up date %s", len(due), on.isoformat())
    sent = failed = 0
    for group in due:
        for message in settle_up_messages(group, expenses, on=on):
            if sink.send(message.to_address, message.subject, message.body):
                sent += 1
                log.info("Settle-up reminder sent to %s for %s", message.to_address, group.name)
            else:
                failed += 1
                log.warning(
                    "Settle-up reminder to %s for %s failed", message.to_address, group.name
                )
    return SettleUpRunResult(groups=len(due), sent=sent, failed=failed)
