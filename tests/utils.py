import logging


class _NoLogHandler(logging.Handler):
    """Log handler that asserts if anything is logged."""

    LOGGING_FORMAT = "%(levelname)s: %(message)s"

    def __init__(self, logger):
        logging.Handler.__init__(self)
        self.setFormatter(logging.Formatter(self.LOGGING_FORMAT))
        self.logger = logger

    def __enter__(self):
        self.logger.addHandler(self)

    def __exit__(self, exc_type, exc_value, traceback):
        self.logger.removeHandler(self)

    def emit(self, record):
        message = self.format(record)
        assert False, "Unexpected logging: %s" % message


def no_log(logger):
    """Return a context manager that asserts if anything is emitted
    on the given logger.
    """
    return _NoLogHandler(logger)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now=1_500_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeClient:
    """Stands in for VNUClient, returning a fixed result per document."""

    def __init__(self, messages=(), results=None):
        self.messages = list(messages)
        self.results = {} if results is None else results
        self.calls = []
        self.closed = False

    def validate(self, content_type, content):
        self.calls.append((content_type, content))
        if isinstance(content, bytes):
            content = content.decode("utf-8")
        if content in self.results:
            return {"messages": list(self.results[content])}
        return {"messages": list(self.messages)}

    def close(self):
        self.closed = True


VALID_PAGE = (
    "<!DOCTYPE html><html><head><title>A valid test page</title></head></html>"
)

INVALID_PAGE = "<!DOCTYPE html><html><head></head><body><p>An invalid page.</p></body>"

INVALID_MESSAGES = (
    {
        "type": "error",
        "lastLine": 1,
        "lastColumn": 34,
        "firstColumn": 28,
        "message": "Element “head” is missing a required instance "
        "of child element “title”.",
    },
)
