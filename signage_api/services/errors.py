class SignageConfigError(Exception):
    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def as_detail(self) -> dict:
        return {"error": self.code, "message": self.message}


class InvalidIdentifier(SignageConfigError):
    code = "invalid_identifier"

    def __init__(self, message: str = "deviceId is required", field: str = "deviceId") -> None:
        super().__init__(message)
        self.field = field

    def as_detail(self) -> dict:
        detail = super().as_detail()
        detail["field"] = self.field
        return detail


class ConfigNotFound(SignageConfigError):
    code = "not_found"

    def __init__(self, device_id: str) -> None:
        super().__init__(f"No configuration for device {device_id!r}")
        self.device_id = device_id


class StorageUnavailable(SignageConfigError):
    code = "storage_unavailable"

    def __init__(self, message: str = "Configuration storage is unavailable") -> None:
        super().__init__(message)
