from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role
from ..rota.scope import Scope


@dataclass(frozen=True)
class Principal:
    """The calling worker, as supplied by the identity provider.

    Note: authentication happens elsewhere; this is plain data.
    """

    worker_id: int
    role: Role
    scopes: tuple[Scope, ...] = ()

    @property
    def primary_scope(self) -> Scope:
        return self.scopes[0] if self.scopes else Scope.default()

    @property
    def is_privileged(self) -> bool:
        return self.role.is_privileged

    def can_act_for(self, worker_id: int) -> bool:
        return self.is_privileged or int(worker_id) == int(self.worker_id)


@dataclass(frozen=True)
class WorkerContact:
    worker_id: int
    email: str
    full_name: Optional[str] = None
