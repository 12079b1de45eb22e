from ..errors import InvalidMaxLoopsLimit, TooManyDistributors


class MaxLoopsLimitHelper:
    """Bound on how many items a single call may iterate over"""

    max_loops_limit = 0

    def _set_max_loops_limit(self, limit: int):
        if limit < self.max_loops_limit:
            raise InvalidMaxLoopsLimit(self.max_loops_limit, limit)

        old_max_loops_limit = self.max_loops_limit
        self.max_loops_limit = limit

        self._emit_event('MaxLoopsLimitUpdated', {
            'old_max_loops_limit': old_max_loops_limit,
            'new_max_loops_limit': limit
        })

    def _ensure_max_loops(self, length: int):
        if length > self.max_loops_limit:
            raise TooManyDistributors(self.max_loops_limit, length)
