"""Domain exceptions raised by services and mapped to HTTP errors by the API layer."""


class StrategyNotFound(LookupError):
    def __init__(self, strategy_id: int):
        super().__init__(f"Strategy {strategy_id} not found")
        self.strategy_id = strategy_id


class ModeSwitchError(RuntimeError):
    """Preconditions for entering live mode are not met."""


class BrokerError(RuntimeError):
    """The broker rejected an order or could not be reached."""
