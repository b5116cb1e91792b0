"""
Canonical inspection fields and the header synonyms used to detect them.

Everything in this module is process-wide reference data. The tables are
built once at import time from tuples and exposed through read-only mapping
proxies, so there is no runtime mutation path.
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple


class CanonicalField(str, Enum):
    ADDRESS = "address"
    CITY = "city"
    STATE = "state"
    ZIP = "zip"
    INSURED = "insured"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    COMPANY_NAME = "company_name"
    DUE_DATE = "due_date"
    APPOINTMENT_FLAG = "appointment_flag"
    APPOINTMENT_DATE = "appointment_date"
    SCHEDULE_FOR = "schedule_for"
    INSPECTION_TYPE = "inspection_type"
    NOTES = "notes"
    POLICY_NUMBER = "policy_number"
    CLAIM_NUMBER = "claim_number"
    PHONE = "phone"
    EMAIL = "email"
    SQUARE_FEET = "square_feet"
    YEAR_BUILT = "year_built"
    PROPERTY_TYPE = "property_type"


@dataclass(frozen=True)
class FieldSpec:
    field: CanonicalField
    label: str
    keywords: Tuple[str, ...]
    required: bool = False


_FIELD_SPECS: Tuple[FieldSpec, ...] = (
    FieldSpec(
        CanonicalField.ADDRESS,
        "Street Address",
        (
            "street", "address", "addr", "location street", "property address",
            "site address", "physical address", "mailing address", "service address",
            "inspection address", "risk address", "property location", "street address",
            "address line", "address1", "address 1", "addr1", "addr 1",
            "property street", "site street", "loc street", "loc address",
            "insured address", "loss address", "loss location", "premise address",
            "location address", "situs address", "situs", "premises",
        ),
        required=True,
    ),
    FieldSpec(
        CanonicalField.CITY,
        "City",
        (
            "city", "town", "municipality", "location city", "property city",
            "site city", "mailing city", "service city", "inspection city",
            "risk city", "insured city", "loss city", "loc city", "premise city",
        ),
        required=True,
    ),
    FieldSpec(
        CanonicalField.STATE,
        "State",
        (
            "state", "st", "province", "location state", "property state",
            "site state", "mailing state", "service state", "inspection state",
            "risk state", "insured state", "loss state", "loc state", "premise state",
            "state code", "state/province",
        ),
        required=True,
    ),
    FieldSpec(
        CanonicalField.ZIP,
        "ZIP Code",
        (
            "zip", "zipcode", "zip code", "zip_code", "postal", "postal code",
            "postalcode", "postcode", "post code", "location zip", "property zip",
            "site zip", "mailing zip", "service zip", "inspection zip", "risk zip",
            "insured zip", "loss zip", "loc zip", "premise zip", "zip+4", "zip4",
            "zip 4", "zip+", "postal zip",
        ),
        required=True,
    ),
    FieldSpec(
        CanonicalField.INSURED,
        "Insured Name",
        (
            "insured", "insured name", "insuredname", "policyholder", "policy holder",
            "customer", "customer name", "client", "client name", "owner", "owner name",
            "property owner", "homeowner", "home owner", "named insured", "insrd",
            "claimant", "claimant name", "account name", "account", "member",
            "member name", "subscriber", "subscriber name", "applicant", "applicant name",
            "name of insured", "name", "full name", "fullname", "contact name",
            "contact", "primary name", "primary contact", "responsible party",
            "loss payee", "loss name", "loss contact",
        ),
    ),
    FieldSpec(
        CanonicalField.FIRST_NAME,
        "First Name",
        (
            "first name", "firstname", "first_name", "fname", "f name", "given name",
            "givenname", "first", "policyholder first", "policy holder first",
            "insured first", "owner first", "customer first", "client first",
            "contact first", "primary first", "member first",
        ),
    ),
    FieldSpec(
        CanonicalField.LAST_NAME,
        "Last Name",
        (
            "last name", "lastname", "last_name", "lname", "l name", "surname",
            "family name", "familyname", "last", "policyholder last", "policy holder last",
            "insured last", "owner last", "customer last", "client last",
            "contact last", "primary last", "member last",
        ),
    ),
    FieldSpec(
        CanonicalField.COMPANY_NAME,
        "Company Name",
        (
            "company", "company name", "companyname", "business", "business name",
            "businessname", "organization", "org", "org name", "corporation",
            "corp", "corp name", "entity", "entity name", "firm", "firm name",
            "dba", "doing business as", "trade name", "tradename", "commercial name",
            "insured company", "insured business", "policyholder company",
        ),
    ),
    FieldSpec(
        CanonicalField.DUE_DATE,
        "Due Date",
        (
            "due", "due date", "duedate", "due_date", "deadline", "expiration",
            "expiration date", "expire", "expire date", "expires", "target date",
            "target", "completion date", "complete by", "complete date",
            "inspection due", "insp due", "required by", "required date",
            "must complete", "must complete by", "needed by", "need by",
            "turnaround", "tat", "tat date", "sla", "sla date", "commit date",
            "committed date", "promise date", "expected date", "expected by",
            "final date", "end date", "close date", "close by",
        ),
    ),
    FieldSpec(
        CanonicalField.APPOINTMENT_FLAG,
        "Appointment Flag",
        (
            "appt", "appointment", "appointment needed", "appt needed", "needs appt",
            "needs appointment", "appointment required", "appt required", "call ahead",
            "call first", "contact first", "schedule required", "scheduling required",
            "must schedule", "must call", "requires appointment", "requires appt",
            "appointment necessary", "pre-schedule", "preschedule", "appointment?",
            "appt?", "call?", "schedule?", "apt", "apt needed", "apt required",
        ),
    ),
    FieldSpec(
        CanonicalField.APPOINTMENT_DATE,
        "Appointment Date",
        (
            "appointment date", "appt date", "scheduled date", "schedule date",
            "scheduled for", "appointment scheduled", "appt scheduled",
            "confirmed date", "confirmed appointment", "booked date", "booked for",
            "reservation date", "reserved date", "set date", "arranged date",
            "arranged for", "apptdate", "appointmentdate", "sched date",
        ),
    ),
    FieldSpec(
        CanonicalField.SCHEDULE_FOR,
        "Schedule DateTime",
        (
            "schedule for", "scheduled for", "schedulefor", "scheduled time",
            "schedule time", "appointment time", "appt time", "appointment datetime",
            "appt datetime", "scheduled datetime", "schedule datetime",
            "inspection time", "inspection datetime", "visit time", "visit datetime",
            "arrival time", "arrive by", "arrival datetime", "start time",
            "begin time", "meeting time", "meeting datetime", "time slot",
            "timeslot", "time/date", "date/time", "datetime",
        ),
    ),
    FieldSpec(
        CanonicalField.INSPECTION_TYPE,
        "Inspection Type",
        (
            "inspection type", "inspectiontype", "insp type", "type", "service type",
            "servicetype", "order type", "ordertype", "job type", "jobtype",
            "work type", "worktype", "survey type", "surveytype", "visit type",
            "visittype", "form type", "formtype", "category", "classification",
            "class", "product", "product type", "service", "service code",
            "inspection category", "insp category", "work order type", "wo type",
            "high value", "standard", "premium", "basic", "level", "tier",
            "complexity", "scope", "inspection scope",
        ),
    ),
    FieldSpec(
        CanonicalField.NOTES,
        "Notes",
        (
            "notes", "note", "comments", "comment", "remarks", "remark",
            "instructions", "instruction", "special instructions", "special notes",
            "additional info", "additional information", "addl info", "add info",
            "description", "desc", "details", "detail", "memo", "memos",
            "observation", "observations", "internal notes", "field notes",
            "inspector notes", "inspection notes", "attention", "alert",
            "warning", "caution", "important", "special", "other", "misc",
            "miscellaneous", "freeform", "free form", "text", "message",
        ),
    ),
    FieldSpec(
        CanonicalField.POLICY_NUMBER,
        "Policy Number",
        (
            "policy", "policy number", "policynumber", "policy #", "policy#",
            "policy no", "policy num", "pol number", "pol #", "pol#", "pol no",
            "contract", "contract number", "contract #", "contract#", "contract no",
            "account number", "account #", "account#", "account no", "acct",
            "acct number", "acct #", "acct#", "acct no", "reference", "reference #",
            "ref", "ref #", "ref#", "ref no", "reference number", "id", "identifier",
        ),
    ),
    FieldSpec(
        CanonicalField.CLAIM_NUMBER,
        "Claim Number",
        (
            "claim", "claim number", "claimnumber", "claim #", "claim#", "claim no",
            "loss number", "loss #", "loss#", "loss no", "case", "case number",
            "case #", "case#", "case no", "file", "file number", "file #", "file#",
            "file no", "incident", "incident number", "incident #", "incident#",
            "report number", "report #", "report#", "report no",
        ),
    ),
    FieldSpec(
        CanonicalField.PHONE,
        "Phone",
        (
            "phone", "telephone", "tel", "phone number", "phonenumber", "phone #",
            "phone#", "contact phone", "contact number", "cell", "cell phone",
            "cellphone", "mobile", "mobile phone", "mobilephone", "home phone",
            "work phone", "office phone", "primary phone", "insured phone",
            "customer phone", "client phone", "daytime phone", "evening phone",
            "callback", "callback number", "call back", "reach at",
        ),
    ),
    FieldSpec(
        CanonicalField.EMAIL,
        "Email",
        (
            "email", "e-mail", "email address", "emailaddress", "mail",
            "electronic mail", "contact email", "insured email", "customer email",
            "client email", "primary email", "work email", "personal email",
        ),
    ),
    FieldSpec(
        CanonicalField.SQUARE_FEET,
        "Square Feet",
        (
            "square feet", "sqft", "sq ft", "sq. ft", "square footage", "squarefeet",
            "squarefootage", "size", "property size", "home size", "building size",
            "living area", "living space", "total sqft", "total sq ft", "area",
            "floor area", "gross area", "heated sqft", "heated sq ft", "footage",
        ),
    ),
    FieldSpec(
        CanonicalField.YEAR_BUILT,
        "Year Built",
        (
            "year built", "yearbuilt", "year_built", "built", "built year",
            "construction year", "year constructed", "year of construction",
            "age", "building age", "home age", "property age", "vintage",
            "original year", "date built", "build date", "construction date",
        ),
    ),
    FieldSpec(
        CanonicalField.PROPERTY_TYPE,
        "Property Type",
        (
            "property type", "propertytype", "dwelling type", "dwellingtype",
            "structure type", "structuretype", "building type", "buildingtype",
            "occupancy", "occupancy type", "use", "property use", "usage",
            "residence type", "residencetype", "home type", "hometype",
            "construction type", "constructiontype", "style", "property style",
        ),
    ),
)

# Detection order: required location first, then names, dates, and the rest.
FIELD_PRIORITY: Tuple[CanonicalField, ...] = (
    CanonicalField.ADDRESS, CanonicalField.CITY, CanonicalField.STATE, CanonicalField.ZIP,
    CanonicalField.INSURED, CanonicalField.FIRST_NAME, CanonicalField.LAST_NAME,
    CanonicalField.COMPANY_NAME,
    CanonicalField.DUE_DATE, CanonicalField.APPOINTMENT_FLAG,
    CanonicalField.APPOINTMENT_DATE, CanonicalField.SCHEDULE_FOR,
    CanonicalField.INSPECTION_TYPE, CanonicalField.NOTES, CanonicalField.PHONE,
    CanonicalField.EMAIL,
    CanonicalField.POLICY_NUMBER, CanonicalField.CLAIM_NUMBER, CanonicalField.SQUARE_FEET,
    CanonicalField.YEAR_BUILT, CanonicalField.PROPERTY_TYPE,
)

FIELD_SPECS: Mapping[CanonicalField, FieldSpec] = MappingProxyType(
    {spec.field: spec for spec in _FIELD_SPECS}
)
FIELD_KEYWORDS: Mapping[CanonicalField, Tuple[str, ...]] = MappingProxyType(
    {spec.field: spec.keywords for spec in _FIELD_SPECS}
)
FIELD_LABELS: Mapping[CanonicalField, str] = MappingProxyType(
    {spec.field: spec.label for spec in _FIELD_SPECS}
)
REQUIRED_FIELDS: Tuple[CanonicalField, ...] = tuple(
    field for field in FIELD_PRIORITY if FIELD_SPECS[field].required
)
