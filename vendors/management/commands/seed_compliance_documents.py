from django.core.management.base import BaseCommand
from django.db import transaction

from vendors.models import ComplianceDocument, Pillar


CATALOG = [
    # ESI & PF coverage
    {
        "name": "EPF Registration",
        "pillar": Pillar.ESI_PF_COVERAGE,
        "description": "Employee Provident Fund Registration Certificate",
        "issuing_authority": "EPFO",
        "required_keywords": ["EMPLOYEES' PROVIDENT FUND", "CODE", "ESTABLISHMENT"],
        "optional_keywords": ["REGIONAL OFFICE", "SUB REGIONAL OFFICE", "MINISTRY OF LABOUR"],
        "validation_regex": r"^[A-Z]{2}[A-Z]{3}\d{10}$",
    },
    {
        "name": "EPF ECR Challan",
        "pillar": Pillar.ESI_PF_COVERAGE,
        "description": "Employee Provident Fund Electronic Challan cum Return",
        "issuing_authority": "EPFO",
        "required_keywords": ["ECR", "CHALLAN", "TRRN", "ESTABLISHMENT ID"],
        "optional_keywords": ["WAGE MONTH", "CONTRIBUTION RATE", "TOTAL AMOUNT"],
        "validation_regex": r"^[A-Z]{2}[A-Z]{3}\d{10}$",
    },
    {
        "name": "ESIC Registration",
        "pillar": Pillar.ESI_PF_COVERAGE,
        "description": "Employee State Insurance Corporation Registration Certificate",
        "issuing_authority": "ESIC",
        "required_keywords": ["EMPLOYEES' STATE INSURANCE CORPORATION", "REGISTRATION CERTIFICATE", "CODE"],
        "optional_keywords": ["REGIONAL OFFICE", "SUB REGIONAL OFFICE", "DATE OF REGISTRATION"],
        "validation_regex": r"^\d{2}-\d{2}-\d{6}-\d{3}$",
    },

    # Factory registration & safety
    {
        "name": "Factory License",
        "pillar": Pillar.FACTORY_REGISTRATION_SAFETY,
        "description": "Factory License under the Factories Act",
        "issuing_authority": "State Factory Department",
        "required_keywords": ["FACTORY", "LICENSE", "FACTORIES ACT"],
        "optional_keywords": ["REGISTRATION NUMBER", "VALID UNTIL", "OCCUPIER"],
        "validation_regex": r"^[A-Z]{2}/[A-Z]{2,3}/\d{4,8}$",
    },
    {
        "name": "Fire NOC",
        "pillar": Pillar.FACTORY_REGISTRATION_SAFETY,
        "description": "Fire Safety Certificate / No Objection Certificate",
        "issuing_authority": "State Fire Department",
        "required_keywords": ["FIRE", "NOC", "SAFETY"],
        "optional_keywords": ["CERTIFICATE", "VALID UNTIL", "INSPECTION"],
        "validation_regex": r"^[A-Z]{2}/FIRE/\d{4}/\d{4,6}$",
    },
    {
        "name": "ISO 9001",
        "pillar": Pillar.FACTORY_REGISTRATION_SAFETY,
        "description": "ISO 9001 Quality Management System Certificate",
        "issuing_authority": "ISO Certification Bodies",
        "required_keywords": ["ISO 9001", "QUALITY MANAGEMENT SYSTEM", "CERTIFICATE"],
        "optional_keywords": ["SCOPE", "VALID UNTIL", "ACCREDITED"],
        "validation_regex": r"^[A-Z]{2,4}9K/\d{2}/[A-Z0-9]{4,8}$",
    },
    {
        "name": "Certificate of Incorporation",
        "pillar": Pillar.FACTORY_REGISTRATION_SAFETY,
        "description": "Certificate of Incorporation issued by the Registrar of Companies",
        "issuing_authority": "Ministry of Corporate Affairs",
        "required_keywords": ["CERTIFICATE OF INCORPORATION", "CIN", "COMPANIES ACT"],
        "optional_keywords": ["REGISTERED OFFICE", "DATE OF INCORPORATION", "ROC"],
        "validation_regex": r"^[UL]\d{5}[A-Z]{2}\d{4}[A-Z]{3}\d{6}$",
    },
    {
        "name": "GSTIN Certificate",
        "pillar": Pillar.FACTORY_REGISTRATION_SAFETY,
        "description": "Goods and Services Tax Registration Certificate",
        "issuing_authority": "GST Council",
        "required_keywords": ["GSTIN", "GOODS AND SERVICES TAX", "REGISTRATION CERTIFICATE"],
        "optional_keywords": ["PRINCIPAL PLACE OF BUSINESS", "DATE OF REGISTRATION", "PAN"],
        "validation_regex": r"^\d{2}[A-Z]{5}\d{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$",
    },

    # Environmental
    {
        "name": "TNPCB Consent",
        "pillar": Pillar.ENVIRONMENTAL,
        "description": "Tamil Nadu Pollution Control Board Consent to Operate",
        "issuing_authority": "TNPCB",
        "required_keywords": ["TAMIL NADU POLLUTION CONTROL BOARD", "CONSENT", "OPERATE"],
        "optional_keywords": ["AIR ACT", "WATER ACT", "VALIDITY"],
        "validation_regex": r"^\d{2}/\d{2}/[A-Z]{1,3}/\d{4,6}$",
    },
    {
        "name": "GOTS Certificate",
        "pillar": Pillar.ENVIRONMENTAL,
        "description": "Global Organic Textile Standard Certificate",
        "issuing_authority": "GOTS Approved Certification Bodies",
        "required_keywords": ["GOTS", "ORGANIC", "TEXTILE STANDARD"],
        "optional_keywords": ["PROCESSING", "TRADING", "SCOPE"],
        "validation_regex": r"^GOTS-[A-Z]{2,4}-\d{6}$",
    },
    {
        "name": "OEKO-TEX Certificate",
        "pillar": Pillar.ENVIRONMENTAL,
        "description": "OEKO-TEX Standard 100 Certificate",
        "issuing_authority": "OEKO-TEX Institutes",
        "required_keywords": ["OEKO-TEX", "STANDARD 100", "CONFIDENCE IN TEXTILES"],
        "optional_keywords": ["PRODUCT CLASS", "VALID UNTIL", "TESTED FOR HARMFUL SUBSTANCES"],
        "validation_regex": r"^\d{2}\.\w{2}\.\d{5}$",
    },
]


class Command(BaseCommand):
    help = "Create or update the compliance document catalog"

    @transaction.atomic
    def handle(self, *args, **kwargs):
        self.stdout.write("Seeding compliance document catalog...")

        created_count = 0
        for entry in CATALOG:
            defaults = {key: value for key, value in entry.items() if key != "name"}
            _, created = ComplianceDocument.objects.update_or_create(
                name=entry["name"],
                defaults=defaults,
            )
            created_count += int(created)
            self.stdout.write(f"  {'Created' if created else 'Updated'}: {entry['name']}")

        self.stdout.write(self.style.SUCCESS(
            f"Catalog ready: {len(CATALOG)} entries ({created_count} new)"
        ))
