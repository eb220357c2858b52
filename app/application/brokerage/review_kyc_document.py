"""
Use case: Admin decision on a KYC document.

Input: ReviewKycDocumentCommand (verified or rejected)
Output: KycDocument
Side effects: verified -> user KYC verified; rejected -> user back to
    unverified.
Failure cases: KycDocumentNotFoundError, InvalidStateError (already
    reviewed), UnsupportedOperationError (status other than
    verified/rejected).
"""

import logging

from app.application.brokerage.dtos import ReviewKycDocumentCommand
from app.application.brokerage.notifications import send_notification
from app.domain.brokerage.entities import (
    KycDocument,
    KycStatus,
    NotificationType,
    VerificationStatus,
)
from app.domain.brokerage.errors import (
    InvalidStateError,
    KycDocumentNotFoundError,
    UnsupportedOperationError,
)
from app.domain.brokerage.ports import NotificationPort, UnitOfWorkFactory

logger = logging.getLogger(__name__)

_USER_STATUS = {
    VerificationStatus.VERIFIED: KycStatus.VERIFIED,
    VerificationStatus.REJECTED: KycStatus.UNVERIFIED,
}


class ReviewKycDocumentUseCase:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifier: NotificationPort | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier

    def execute(self, command: ReviewKycDocumentCommand) -> KycDocument:
        user_status = _USER_STATUS.get(command.status)
        if user_status is None:
            raise UnsupportedOperationError("KYC review", command.status.value)

        with self._uow_factory() as uow:
            document = uow.kyc_documents.get(command.document_id)
            if document is None:
                raise KycDocumentNotFoundError(command.document_id)

            reason = (
                command.rejection_reason
                if command.status is VerificationStatus.REJECTED
                else None
            )
            if not uow.kyc_documents.set_verification(document.id, command.status, reason):
                raise InvalidStateError(
                    "KYC document", document.id, document.verification_status.value
                )
            uow.users.set_kyc_status(document.user_id, user_status)
            updated = uow.kyc_documents.get(document.id)
            uow.commit()

        logger.info(
            "KYC document %d %s; user_id=%d is now %s",
            document.id,
            command.status.value,
            document.user_id,
            user_status.value,
        )
        message = (
            "Your identity has been verified."
            if command.status is VerificationStatus.VERIFIED
            else f"Your document was rejected: {reason or 'no reason given'}."
        )
        send_notification(
            self._notifier, document.user_id, "KYC review", message, NotificationType.KYC
        )
        return updated
