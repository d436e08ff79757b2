import json

from .strategies import get_strategy

BASE_PROMPT = """Analyze this document OCR text and verify if it is a valid {document_type}.

CRITICAL: You MUST wrap your entire response in ```json and ``` tags and follow this EXACT schema:
{{
  "verification": {{
    "isValid": boolean,
    "reason": "string explaining why valid/invalid"
  }},
  "extractedFields": {{ ...document specific fields listed below... }},
  "confidence": number between 0 and 1
}}

OCR Text to analyze:
{text}
"""

ISO_REQUIREMENTS = [
    'Clear mention of the "{standard}" standard',
    'Accredited certification body details',
    'Organization name and scope',
    'Valid certificate number',
    'Issue and expiry dates',
    'Accreditation marks/symbols',
]
ISO_REJECT = [
    'Wrong ISO standard mentioned',
    'Expired certificate',
    'Missing accreditation marks',
    'Invalid certification body',
    'Draft or provisional certificate',
]
ISO_FIELDS = {
    'certificateNumber': 'string - unique certificate ID',
    'isoStandard': 'string - exact standard number',
    'organizationName': 'string - certified organization',
    'organizationAddress': 'string - complete address',
    'scope': 'string - certification scope',
    'issueDate': 'string - DD/MM/YYYY',
    'validUntil': 'string - DD/MM/YYYY',
    'certificationBody': 'string - name of certification body',
    'accreditationDetails': 'string - accreditation information',
    'hasValidMarks': 'boolean - true if accreditation marks present',
}

DOCUMENT_PROMPTS = {
    'EPF Registration': {
        'requirements': [
            'Clear mention of "EMPLOYEES\' PROVIDENT FUND" or "EPFO"',
            'Registration/Intimation document (NOT challan/return)',
            'Valid EPF code number, modern [STATE][OFFICE][NUMBER] (e.g. PUPUN0304683000) or legacy XX/XXX/XXXXXXX/XXX',
            'Establishment details',
            'Date of registration',
            'Official formatting (letterhead/office details)',
        ],
        'reject': [
            'EPF ECR Challan (has TRRN/ECR ID)',
            'Monthly return document',
            'Payment document',
            'Application form',
            'Invalid code format',
        ],
        'fields': {
            'epfCode': 'string - registration code',
            'establishmentName': 'string - full name',
            'establishmentAddress': 'string - complete address',
            'dateOfRegistration': 'string - DD/MM/YYYY',
            'issuingAuthority': 'string - EPF office details',
            'employerName': 'string - name of employer',
            'validityPeriod': 'string or null - if mentioned',
            'hasOfficialStamp': 'boolean - true if stamped',
        },
        'notes': 'Modern EPF documents may be digital without physical stamps; judge content authenticity.',
    },
    'EPF ECR Challan': {
        'requirements': [
            'Transaction Reference Number (TRRN) or ECR ID',
            'Establishment details with EPF code',
            'Wage month and year',
            'Payment/contribution details',
            'Total amount',
            'Payment confirmation',
        ],
        'reject': [
            'Registration document',
            'Monthly return without payment',
            'Draft/unconfirmed payment',
            'Invalid establishment code',
        ],
        'fields': {
            'trrn': 'string - transaction reference',
            'ecrId': 'string or null - ECR number if present',
            'establishmentCode': 'string - EPF code',
            'establishmentName': 'string - full name',
            'wageMonth': 'string - month of wages',
            'wageYear': 'string - year of wages',
            'totalAmount': 'string - total payment amount',
            'paymentDate': 'string - DD/MM/YYYY',
            'hasPaymentConfirmation': 'boolean - true if payment confirmed',
        },
    },
    'ESIC Registration': {
        'requirements': [
            'Clear heading "EMPLOYEES\' STATE INSURANCE CORPORATION"',
            '17-digit ESIC code number',
            'Complete establishment details',
            'Date of registration/issue',
            'Official letterhead or logo',
            'Issuing authority details',
        ],
        'reject': [
            'Missing ESIC header/logo',
            'Invalid code format',
            'Missing registration details',
            'Not an original registration document',
            'Application form instead of certificate',
        ],
        'fields': {
            'esicCode': 'string - 17-digit code',
            'establishmentName': 'string - full registered name',
            'establishmentAddress': 'string - complete address',
            'dateOfRegistration': 'string - DD/MM/YYYY',
            'issuingAuthority': 'string - issuing office details',
            'employerName': 'string - name of employer',
            'validityPeriod': 'string or null - if mentioned',
            'hasOfficialStamp': 'boolean - true if stamp present',
        },
    },
    'TNPCB Consent': {
        'requirements': [
            'Tamil Nadu Pollution Control Board letterhead/logo',
            'Complete consent order number',
            'Issue date and validity period',
            'Establishment details matching application',
            'Authorized signature/stamp',
            'Industry category and details',
        ],
        'reject': [
            'Missing TNPCB branding',
            'Expired consent',
            'Incomplete consent number',
            'Missing signature/stamp',
            'Application form instead of consent order',
        ],
        'fields': {
            'consentOrderNumber': 'string - full consent number',
            'establishmentName': 'string - full registered name',
            'establishmentAddress': 'string - complete address',
            'issueDate': 'string - DD/MM/YYYY',
            'validUntil': 'string - DD/MM/YYYY',
            'proprietorName': 'string - name of proprietor/authorized person',
            'industryType': 'string - type of industry/category',
            'hasOfficialStamp': 'boolean - true if stamp present',
            'hasSignature': 'boolean - true if signed',
            'hasTnpcbLogo': 'boolean - true if logo present',
        },
    },
    'ISO 9001': {'requirements': ISO_REQUIREMENTS, 'reject': ISO_REJECT, 'fields': ISO_FIELDS},
    'ISO 14001': {'requirements': ISO_REQUIREMENTS, 'reject': ISO_REJECT, 'fields': ISO_FIELDS},
    'ISO 45001': {'requirements': ISO_REQUIREMENTS, 'reject': ISO_REJECT, 'fields': ISO_FIELDS},
    'GOTS Certificate': {
        'requirements': [
            'Global Organic Textile Standard logo',
            'Authorized certification body details',
            'License/certificate number',
            'Scope of certification',
            'Valid certification period',
            'Product categories covered',
        ],
        'reject': [
            'Missing GOTS logo',
            'Expired certificate',
            'Unauthorized certification body',
            'Incomplete product scope',
            'Draft or provisional status',
        ],
        'fields': {
            'licenseNumber': 'string - certificate number',
            'organizationName': 'string - certified organization',
            'organizationAddress': 'string - complete address',
            'productScope': 'string - certified products/categories',
            'issueDate': 'string - DD/MM/YYYY',
            'validUntil': 'string - DD/MM/YYYY',
            'certificationBody': 'string - issuing body name',
            'standardVersion': 'string - GOTS version number',
            'hasGotsLogo': 'boolean - true if logo present',
            'hasValidMarks': 'boolean - true if certification marks present',
        },
    },
    'OEKO-TEX Certificate': {
        'requirements': [
            'OEKO-TEX logo and branding',
            'Valid certificate number',
            'Product class/category',
            'Testing institute details',
            'Test criteria/standards',
            'Validity period',
        ],
        'reject': [
            'Missing OEKO-TEX branding',
            'Expired certificate',
            'Invalid product classification',
            'Missing test criteria',
            'Unauthorized testing institute',
        ],
        'fields': {
            'certificateNumber': 'string - unique certificate number',
            'organizationName': 'string - certified company',
            'organizationAddress': 'string - complete address',
            'productClass': 'string - product category/class',
            'testCriteria': 'string - testing standards met',
            'issueDate': 'string - DD/MM/YYYY',
            'validUntil': 'string - DD/MM/YYYY',
            'instituteDetails': 'string - testing institute name',
            'hasOekoTexLogo': 'boolean - true if logo present',
            'hasValidMarks': 'boolean - true if marks present',
        },
    },
    'Fire NOC': {
        'requirements': [
            'Fire Department letterhead/logo',
            'NOC/Certificate number',
            'Establishment details',
            'Validity period',
            'Fire safety compliance details',
            'Authorized signature/stamp',
        ],
        'reject': [
            'Not on official letterhead',
            'Expired NOC',
            'Provisional/temporary clearance',
            'Incomplete safety details',
            'Missing authorization',
        ],
        'fields': {
            'nocNumber': 'string - certificate/NOC number',
            'establishmentName': 'string - full name',
            'establishmentAddress': 'string - complete address',
            'issueDate': 'string - DD/MM/YYYY',
            'validUntil': 'string - DD/MM/YYYY',
            'issuingAuthority': 'string - fire department details',
            'buildingType': 'string - type of establishment',
            'floorArea': 'string or null - area details if mentioned',
            'hasOfficialStamp': 'boolean - true if stamped',
            'hasSignature': 'boolean - true if signed',
        },
    },
    'Factory License': {
        'requirements': [
            'Clear mention of "Factory License" or "Registration and License to work a factory"',
            'Issuing authority (Directorate of Industrial Safety and Health)',
            'License/Registration number',
            'Factory name and complete address',
            'Validity period or expiry date',
            'Maximum workers and horsepower allowed',
            "License holder's name",
        ],
        'reject': [
            'Missing any of the above required elements',
            'Not issued by proper authority',
            'Expired license',
            'Provisional or temporary license',
            'Application form instead of actual license',
        ],
        'fields': {
            'licenseNumber': 'string - registration/license number',
            'factoryName': 'string - full registered name',
            'licenseHolderName': 'string - name of licensee',
            'factoryAddress': 'string - complete address',
            'validUntil': 'string - expiry date',
            'maxWorkers': 'string - maximum workers allowed',
            'maxHorsePower': 'string - maximum HP allowed',
            'issueDate': 'string - date of issue',
            'issuingAuthority': 'string - name of issuing office/authority',
        },
    },
    'Certificate of Incorporation': {
        'requirements': [
            'Title "Certificate of Incorporation"',
            'Registrar of Companies as issuing authority',
            'Corporate Identity Number (CIN), 21 characters',
            'Company name and type (private/public limited)',
            'Date of incorporation',
        ],
        'reject': [
            'Name availability or reservation letter',
            'Application form (SPICe/INC) instead of certificate',
            'Missing or malformed CIN',
        ],
        'fields': {
            'cin': 'string - corporate identity number',
            'companyName': 'string - registered company name',
            'companyType': 'string - private/public limited',
            'dateOfIncorporation': 'string - DD/MM/YYYY',
            'registrarOffice': 'string - ROC office',
            'registeredAddress': 'string or null - if present',
        },
    },
    'GSTIN Certificate': {
        'requirements': [
            'Title "Registration Certificate" under Goods and Services Tax',
            '15-character GSTIN',
            'Legal name and trade name of business',
            'Principal place of business',
            'Date of liability/validity',
        ],
        'reject': [
            'GST return or invoice instead of registration certificate',
            'Provisional ID without GSTIN',
            'Cancelled registration',
        ],
        'fields': {
            'gstin': 'string - 15 character GSTIN',
            'legalName': 'string - legal name of business',
            'tradeName': 'string or null - trade name',
            'constitutionOfBusiness': 'string - proprietorship/company etc.',
            'principalPlaceOfBusiness': 'string - address',
            'dateOfLiability': 'string - DD/MM/YYYY',
            'registrationType': 'string - regular/composition',
        },
    },
}

DEFAULT_FIELDS = {
    'documentTitle': 'string - full title as shown',
    'registrationNumber': 'string - any unique identifier',
    'organizationName': 'string - name of organization',
    'issueDate': 'string - date of issue if present',
    'expiryDate': 'string - expiry date if present',
    'issuingAuthority': 'string - who issued this document',
}


def _numbered(items, **fmt):
    return "\n".join(f"{i}. {item.format(**fmt)}" for i, item in enumerate(items, start=1))


def build_prompt(text, document_type, expected_keywords=None, identifier_format=''):
    """Instruction payload for one OCR text and declared document type.

    Catalog names are resolved through the strategy table, so an alias such
    as "ISO 9001 Certificate" gets the same requirements and fields as
    "ISO 9001".
    """
    canonical = get_strategy(document_type).name
    prompt = BASE_PROMPT.format(document_type=document_type, text=text)
    spec = DOCUMENT_PROMPTS.get(canonical)

    sections = []
    if spec:
        sections.append(
            f"REQUIREMENTS:\nA valid {document_type} MUST contain:\n"
            + _numbered(spec['requirements'], standard=canonical)
        )
        sections.append("REJECT if:\n" + "\n".join(f"- {r}" for r in spec['reject']))
        if spec.get('notes'):
            sections.append(f"Note: {spec['notes']}")
        fields = spec['fields']
    else:
        fields = DEFAULT_FIELDS

    if expected_keywords:
        sections.append(
            "Expected content markers for this document type: "
            + ", ".join(expected_keywords)
        )

    if identifier_format:
        sections.append(
            "The registration identifier on a genuine document matches the pattern "
            f"{identifier_format}. Copy it exactly as printed and mention a mismatch in the reason."
        )

    schema = {
        'verification': {'isValid': 'boolean', 'reason': 'Detailed explanation of why valid/invalid'},
        'extractedFields': fields,
        'confidence': 'number between 0 and 1',
    }
    sections.append(
        "Your response MUST follow this exact schema, wrapped in ```json fences:\n"
        + json.dumps(schema, indent=2)
    )

    return prompt + "\n" + "\n\n".join(sections)
