"""
Ordered composition of signing strategies
"""

import logging
from typing import Iterable, Iterator, List, Optional

from ..exceptions import ConfigurationError, ErrorCodes
from .base import SigningStrategy
from .types import RequestView

logger = logging.getLogger(__name__)


class SigningChain(SigningStrategy):
    """
    Applies a sequence of strategies to the same request, in order.

    Every strategy runs unconditionally; a later strategy sees (and may
    overwrite) the headers set by an earlier one. An empty chain leaves the
    request untouched.
    """

    def __init__(self, strategies: Optional[Iterable[SigningStrategy]] = None):
        self._strategies: List[SigningStrategy] = []
        for strategy in strategies or ():
            self.add(strategy)

    def add(self, strategy: SigningStrategy) -> "SigningChain":
        """
        Append a strategy to the end of the chain.

        Raises:
            ConfigurationError: If strategy is not a SigningStrategy
        """
        if not isinstance(strategy, SigningStrategy):
            raise ConfigurationError(
                f"Expected a SigningStrategy, got {type(strategy).__name__}",
                ErrorCodes.INVALID_CONFIG,
                {"type": type(strategy).__name__}
            )
        self._strategies.append(strategy)
        return self

    def apply(self, request: RequestView) -> None:
        for strategy in self._strategies:
            strategy.apply(request)

        if self._strategies:
            logger.debug(
                f"Applied {len(self._strategies)} signing strateg"
                f"{'y' if len(self._strategies) == 1 else 'ies'} to "
                f"{request.method.value} request"
            )

    @property
    def strategies(self) -> List[SigningStrategy]:
        return list(self._strategies)

    def __len__(self) -> int:
        return len(self._strategies)

    def __iter__(self) -> Iterator[SigningStrategy]:
        return iter(list(self._strategies))

    def __repr__(self) -> str:
        return f"SigningChain({self._strategies!r})"
