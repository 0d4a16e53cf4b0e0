"""Domain errors raised by the service layer and mapped to HTTP responses by the routers."""


class RentFinderError(Exception):
    """Base class for domain errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PropertyNotFoundError(RentFinderError):
    def __init__(self, property_id: str):
        super().__init__("Property not found")
        self.property_id = property_id


class SavedPropertyNotFoundError(RentFinderError):
    def __init__(self, property_id: str):
        super().__init__("Saved property not found")
        self.property_id = property_id


class AlreadySavedError(RentFinderError):
    def __init__(self, property_id: str):
        super().__init__("Property already saved")
        self.property_id = property_id


class NotAuthorizedError(RentFinderError):
    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class ApplicationNotFoundError(RentFinderError):
    def __init__(self, application_id: str):
        super().__init__("Application not found")
        self.application_id = application_id


class InvalidApplicationError(RentFinderError):
    """Application request that conflicts with the listing or the application's state."""


class DuplicateApplicationError(InvalidApplicationError):
    def __init__(self, property_id: str):
        super().__init__("You already have an application for this property")
        self.property_id = property_id


class MessageNotFoundError(RentFinderError):
    def __init__(self, message_id: str):
        super().__init__("Message not found")
        self.message_id = message_id


class RecipientNotFoundError(RentFinderError):
    def __init__(self, user_id: str):
        super().__init__("Recipient not found")
        self.user_id = user_id


class InvalidMessageError(RentFinderError):
    pass
