# orders/services/exceptions.py


class OrderError(Exception):
    """Base order exception"""


class OrderValidationError(OrderError):
    pass


class OrderCreationError(OrderError):
    pass


class OrderStockError(OrderCreationError):
    """
    Stock deduction failed while creating an order.
    The original inventory error is kept on `.inventory_error`.
    """

    def __init__(self, inventory_error):
        super().__init__(str(inventory_error))
        self.inventory_error = inventory_error


class InvalidOrderTransitionError(OrderError):
    pass


class RefundError(OrderError):
    pass
