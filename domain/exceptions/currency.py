class RatesException(Exception):
    pass


class ProviderError(RatesException):
    pass


class UnsupportedPairError(ProviderError):
    pass


class InvalidResponseFormatError(ProviderError):
    pass


class InvalidPriceError(ProviderError):
    pass


class NetworkError(ProviderError):
    pass


class UpstreamError(ProviderError):
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f'HTTP {status_code}: {body}')


class AllRatesFailedError(ProviderError):
    def __init__(self, errors: dict):
        self.errors = errors
        details = ', '.join(f'{pair}: {message}' for pair, message in errors.items())
        super().__init__(f'Failed to fetch any exchange rates: {details}')


class ValidationFailedError(RatesException):
    pass


class InvalidDateError(ValidationFailedError):
    pass


class RateNotFoundError(RatesException):
    pass
