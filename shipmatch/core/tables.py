from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .aws import ddb
from .settings import S

@dataclass(frozen=True)
class Tables:
    shipments: Any
    users: Any
    match_log: Any

T = Tables(
    shipments=ddb.Table(S.shipments_table_name),
    users=ddb.Table(S.users_table_name),
    match_log=ddb.Table(S.match_log_table_name),
)
