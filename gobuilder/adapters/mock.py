"""
Mock adapter — answers for the compiler, the container runtime or the
inspection tool so builds can be driven without spawning anything.
"""

from __future__ import annotations

from gobuilder.adapters.base import Adapter, ExecutionContext
from gobuilder.core.models.action import Receipt


class MockAdapter(Adapter):
    """Records every context it is handed.

    Unscripted actions succeed with exit status 0. ``set_response`` and
    ``set_failure`` script the outcome of one action id.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self.adapter_name = adapter_name
        self.available = available
        self.default_output = default_output
        self.scripted: dict[str, Receipt] = {}
        self.call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self.adapter_name

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    def is_available(self, program: str | None = None) -> bool:
        return self.available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        self.scripted[action_id] = receipt

    def set_failure(self, action_id: str, error: str = "Mock failure", return_code: int = 1) -> None:
        self.set_response(
            action_id,
            Receipt.failure(self.adapter_name, action_id, error, return_code=return_code),
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self.call_log.append(context)
        action_id = context.action.id
        scripted = self.scripted.get(action_id)
        if scripted is not None:
            # the registry stamps duration_ms on what we return
            return scripted.model_copy(deep=True)
        return Receipt.success(
            self.adapter_name,
            action_id,
            output=self.default_output,
            return_code=0,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Forget recorded calls and scripted outcomes."""
        self.call_log.clear()
        self.scripted.clear()
