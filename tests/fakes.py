from oddgravity.errors import ApiError


class FakeApi:
    """Stands in for ApiClient. Fails every call while `down` is set."""

    def __init__(self, down=False):
        self.down = down
        self.sent = []
        self.fail_after = None

    def submit_score(self, entry):
        if self.down or (self.fail_after is not None and len(self.sent) >= self.fail_after):
            raise ApiError("backend unreachable")
        self.sent.append(entry)
        return {"ok": True}

    def register(self, existing_id=None):
        if self.down:
            raise ApiError("backend unreachable")
        return existing_id or "11111111-2222-3333-4444-555555555555"

    def daily(self):
        raise ApiError("backend unreachable")
