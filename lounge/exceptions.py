class UnknownTimerError(Exception):
    def __init__(self, timer_id):
        super().__init__(f"Unknown timer: {timer_id}")
        self.timer_id = timer_id


class MissingFieldsError(Exception):
    def __init__(self, fields):
        super().__init__("Missing required fields")
        self.fields = fields


class InvalidPaymentTypeError(Exception):
    def __init__(self, payment_type):
        super().__init__(f"Invalid payment type: {payment_type}")
        self.payment_type = payment_type
