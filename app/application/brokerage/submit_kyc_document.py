"""
Use case: Submit an identity document for KYC review.

Input: SubmitKycDocumentCommand
Output: KycDocument (pending)
Side effects: an unverified user moves to KYC status pending.
Failure cases: UserNotFoundError.
"""

import logging

from app.application.brokerage.dtos import SubmitKycDocumentCommand
from app.domain.brokerage.entities import KycDocument, KycStatus
from app.domain.brokerage.errors import UserNotFoundError
from app.domain.brokerage.ports import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class SubmitKycDocumentUseCase:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def execute(self, command: SubmitKycDocumentCommand) -> KycDocument:
        with self._uow_factory() as uow:
            user = uow.users.get(command.user_id)
            if user is None:
                raise UserNotFoundError(command.user_id)

            document = uow.kyc_documents.add(
                user_id=user.id,
                document_type=command.document_type,
                document_number=command.document_number,
                expiry_date=command.expiry_date,
            )
            if user.kyc_status is KycStatus.UNVERIFIED:
                uow.users.set_kyc_status(user.id, KycStatus.PENDING)
            uow.commit()

        logger.info(
            "KYC document %d (%s) submitted by user_id=%d",
            document.id,
            document.document_type,
            user.id,
        )
        return document
