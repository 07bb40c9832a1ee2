"""Domain exceptions raised by the service layer and mapped to HTTP errors by the API."""


class NotFoundError(Exception):
    """A referenced capture, project, task or integration does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} not found")


class UnsupportedServiceError(Exception):
    """Integration requested for a service that has no adapter."""

    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Service {service} is not supported")


class IntegrationUnavailableError(Exception):
    """Integration exists but cannot be synced (missing or disabled)."""

    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Integration for {service} not found or disabled")
