# gymdash/client_rows.py
from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

from .logic_models import Client, ClientRow, Package, Session
from .weekly import client_visibility


def _join(nums) -> str:
    return " + ".join(str(n) for n in nums)


def compute_client_rows(
    clients: Sequence[Client],
    packages: Sequence[Package],
    sessions: Sequence[Session],
    weekly_sessions: Sequence[Session],
    week_start: Optional[date] = None,
) -> List[ClientRow]:
    """
    Package usage per client for the dashboard table.

    Shows the last two packages that still have sessions left (an old pack
    running out next to a new one). With nothing left, shows only the newest
    package. A client who never bought a package but attended drop-ins shows
    a deficit of minus their lifetime session count. Clients archived on or
    before `week_start` get no row.
    """
    visible = client_visibility(clients, week_start)
    rows: List[ClientRow] = []
    for client in clients:
        if not visible(client.id):
            continue
        client_pkgs = sorted(
            (p for p in packages if p.client_id == client.id),
            key=lambda p: (p.start_date, p.id),
        )
        client_sessions = [s for s in sessions if s.client_id == client.id]
        week_count = sum(1 for s in weekly_sessions if s.client_id == client.id)

        stats = []
        for p in client_pkgs:
            used = sum(1 for s in client_sessions if s.package_id == p.id)
            stats.append((p, used, p.sessions_purchased - used))

        active = [x for x in stats if x[2] > 0]
        if active:
            shown = active[-2:]
        elif stats:
            shown = stats[-1:]
        else:
            shown = []

        package_display = used_display = remaining_display = "0"
        total_remaining = 0

        if shown:
            package_display = _join(p.sessions_purchased for p, _, _ in shown)
            used_display = _join(used for _, used, _ in shown)
            remaining_display = _join(rem for _, _, rem in shown)
            total_remaining = sum(rem for _, _, rem in shown)
        elif client_sessions:
            lifetime = len(client_sessions)
            used_display = str(lifetime)
            remaining_display = str(-lifetime)
            total_remaining = -lifetime

        rows.append(ClientRow(
            client_id=client.id,
            client_name=client.name,
            package_display=package_display,
            used_display=used_display,
            remaining_display=remaining_display,
            week_count=week_count,
            total_remaining=total_remaining,
        ))
    return rows
