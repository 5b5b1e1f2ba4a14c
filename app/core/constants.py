"""
Application-wide constants
"""

SERVICE_NAME = "hr-leave-workflow"

# Messages shared across services
MSG_ALREADY_PROCESSED = "This request has already been processed"
MSG_APPROVAL_NOT_FOUND = "Approval not found"
MSG_LEAVE_TYPE_UNAVAILABLE = "Leave type is not available for your level"
