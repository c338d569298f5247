"""Structural types for the records exchanged with clients and with NPS.

There are four record shapes, one per side of each pipeline:

    ProtectionApplication        client request body   (outbound input)
    NpsApplicationRequest        NPS request body      (outbound output)
    NpsApplicationResponse       NPS response body     (inbound input)
    ProtectionApplicationResponse client response body (inbound output)

The records travel through the rules as plain dictionaries; these TypedDicts
describe their shape for readers and type checkers. Fields a rule may leave
out are declared with NotRequired.

The pension debit list is the one place the two schemas disagree on the shape
of array elements, so each element is validated into a pydantic model and
rebuilt instead of being patched field by field.
"""

from dataclasses import dataclass
from typing import NotRequired, TypedDict

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
)


class PensionDebitRecord(TypedDict):
    startDate: str
    amount: float


class ProtectionApplication(TypedDict):
    protectionType: str
    relevantAmount: NotRequired[float]
    preADayPensionInPayment: NotRequired[float]
    postADayBenefitCrystallisationEvents: NotRequired[float]
    uncrystallisedRights: NotRequired[float]
    nonUKRights: NotRequired[float]
    pensionDebits: NotRequired[list[PensionDebitRecord]]


class NpsPensionDebitRecord(TypedDict):
    pensionDebitStartDate: str
    pensionDebitEnteredAmount: float


class NpsProtectionRequest(TypedDict):
    type: int
    relevantAmount: NotRequired[float]
    preADayPensionInPayment: NotRequired[float]
    postADayBCE: NotRequired[float]
    uncrystallisedRights: NotRequired[float]
    nonUKRights: NotRequired[float]


class NpsApplicationRequest(TypedDict):
    nino: str
    protection: NpsProtectionRequest
    pensionDebits: NotRequired[list[NpsPensionDebitRecord]]


class NpsProtection(TypedDict):
    id: NotRequired[int]
    version: NotRequired[int]
    type: int
    status: NotRequired[int]
    notificationID: NotRequired[int]
    protectionReference: NotRequired[str]
    certificateDate: NotRequired[str]
    certificateTime: NotRequired[str]
    relevantAmount: NotRequired[float]
    preADayPensionInPayment: NotRequired[float]
    postADayBCE: NotRequired[float]
    uncrystallisedRights: NotRequired[float]
    nonUKRights: NotRequired[float]


class NpsApplicationResponse(TypedDict):
    nino: str
    pensionSchemeAdministratorCheckReference: NotRequired[str]
    protection: NpsProtection


class ProtectionDetails(TypedDict):
    protectionID: NotRequired[int]
    version: NotRequired[int]
    protectionType: str
    status: NotRequired[str]
    notificationId: NotRequired[int]
    protectionReference: NotRequired[str]
    certificateDate: NotRequired[str]
    relevantAmount: NotRequired[float]
    preADayPensionInPayment: NotRequired[float]
    postADayBenefitCrystallisationEvents: NotRequired[float]
    uncrystallisedRights: NotRequired[float]
    nonUKRights: NotRequired[float]


class ProtectionApplicationResponse(ProtectionDetails):
    nino: str
    psaCheckReference: NotRequired[str]


class NpsReadResponse(TypedDict):
    nino: str
    pensionSchemeAdministratorCheckReference: NotRequired[str]
    protections: NotRequired[list[NpsProtection]]


class ProtectionsReadResponse(TypedDict):
    nino: str
    psaCheckReference: NotRequired[str]
    protections: NotRequired[list[ProtectionDetails]]


# Client amounts: JSON numbers only, booleans and numeric strings rejected
Amount = StrictInt | StrictFloat

AMOUNT_ADAPTER: TypeAdapter[int | float] = TypeAdapter(Amount)


class PensionDebit(BaseModel):
    """A pension debit as submitted by the client.

    Attributes:
        start_date: Debit start date (ISO 8601 date string, not validated)
        amount: Debit amount
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_date: StrictStr = Field(alias="startDate")
    amount: Amount

    def to_nps(self) -> "NpsPensionDebit":
        return NpsPensionDebit(start_date=self.start_date, entered_amount=self.amount)


@dataclass(frozen=True)
class NpsPensionDebit:
    """A pension debit in the shape NPS expects.

    Attributes:
        start_date: Debit start date
        entered_amount: Debit amount as entered by the client
    """

    start_date: str
    entered_amount: float

    def to_dict(self) -> NpsPensionDebitRecord:
        """Convert to the NPS request element."""
        return {
            "pensionDebitStartDate": self.start_date,
            "pensionDebitEnteredAmount": self.entered_amount,
        }
