"""
Services du module AccessRequest.

Conversion des vues de la passerelle d'autorisation en schémas de réponse.
"""
from typing import List

from app.api.v1.access_request.schemas import (
    AccessRequestResponse,
    AccessRequestWithDoctor,
    AccessRequestWithParties,
    AccessRequestWithPatient,
)
from app.api.v1.user.schemas import UserSummaryResponse
from app.services.access_control import AccessRequestView


def _base(view: AccessRequestView) -> dict:
    return AccessRequestResponse.model_validate(view.request).model_dump()


def with_doctor(views: List[AccessRequestView]) -> List[AccessRequestWithDoctor]:
    return [
        AccessRequestWithDoctor(
            **_base(view),
            doctor=UserSummaryResponse.model_validate(view.doctor),
        )
        for view in views
    ]


def with_patient(views: List[AccessRequestView]) -> List[AccessRequestWithPatient]:
    return [
        AccessRequestWithPatient(
            **_base(view),
            patient=UserSummaryResponse.model_validate(view.patient),
            record_count=view.record_count or 0,
        )
        for view in views
    ]


def with_parties(views: List[AccessRequestView]) -> List[AccessRequestWithParties]:
    return [
        AccessRequestWithParties(
            **_base(view),
            doctor=UserSummaryResponse.model_validate(view.doctor),
            patient=UserSummaryResponse.model_validate(view.patient),
        )
        for view in views
    ]
