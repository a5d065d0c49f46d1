from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from formflow.domain.errors import NotFoundError
from formflow.domain.ports import ActionHandler, RouteKey
from formflow.domain.results import ActionResult, Failure, SubmissionRequest
from formflow.usecases.action_registry import ActionRegistry
from formflow.usecases.normalize_result import ValidationAggregator

_log = logging.getLogger(__name__)


@dataclass
class DispatchAction:
    """Resolve a route key, invoke its handler and normalize the outcome.

    Form controllers and the navigation bridge share one instance so user and
    programmatic submissions resolve and normalize identically.
    """

    registry: ActionRegistry
    aggregator: ValidationAggregator = field(default_factory=ValidationAggregator)

    def resolve(self, route_key: RouteKey) -> ActionHandler:
        try:
            return self.registry.resolve(route_key)
        except NotFoundError as exc:
            _log.error("Dispatch wiring fault: %s", exc.message)
            raise

    async def invoke(self, handler: ActionHandler, request: SubmissionRequest) -> ActionResult:
        """Run ``handler`` and return its normalized result.

        Handler faults become ``Failure`` results; ``NotFoundError`` raised
        from inside a handler is a wiring bug and propagates.
        """
        try:
            raw: Any = handler(request)
            if inspect.isawaitable(raw):
                raw = await raw
        except NotFoundError:
            raise
        except Exception as exc:
            _log.warning("Action handler failed: %s", exc, exc_info=_log.isEnabledFor(logging.DEBUG))
            result = self.aggregator.normalize(exc)
            if not isinstance(result, Failure):
                result = Failure(message=str(exc) or "Unexpected error.")
            return result

        result = self.aggregator.normalize(raw)
        if result.kind == "validation":
            _log.debug("Action returned validation errors: %s", getattr(result, "message", ""))
        return result

    async def __call__(
        self, route_key: RouteKey, payload: Optional[Mapping[str, Any]] = None
    ) -> ActionResult:
        handler = self.resolve(route_key)
        return await self.invoke(handler, SubmissionRequest.of(payload))


__all__ = ["DispatchAction"]
