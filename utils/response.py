class Response(object):
    """Outcome of a download: the status plus the raw requests response, or an error."""

    def __init__(self, url, status, raw_response=None, error=None):
        self.url = url
        self.status = status
        self.raw_response = raw_response
        self.error = error

    @property
    def content_type(self):
        if self.raw_response is None:
            return ""
        return (self.raw_response.headers.get("Content-Type") or "").lower()
