import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from django.conf import settings

logger = logging.getLogger(__name__)

REFERENCE_EXTENSIONS = ('.png', '.jpg', '.jpeg')


@dataclass(frozen=True)
class KeywordRules:
    required: Tuple[str, ...] = ()
    any_of: Tuple[str, ...] = ()
    patterns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class KeywordCheck:
    passed: bool
    reason: str = ''
    missing: Tuple[str, ...] = ()


@dataclass(frozen=True)
class VerificationStrategy:
    name: str
    aliases: Tuple[str, ...] = ()
    keyword_rules: Optional[KeywordRules] = None
    layout_threshold: Optional[float] = None
    reference_slug: Optional[str] = None
    registry_check: Optional[str] = None
    identifier_fields: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_layout(self):
        return self.layout_threshold is not None and bool(self.reference_slug)


ISO_ANY_OF = ('Scope of Certification', 'Certification Body', 'Accreditation', 'Management System')

STRATEGIES = (
    VerificationStrategy(
        name='GSTIN Certificate',
        aliases=('GSTIN', 'GST Registration'),
        layout_threshold=0.75,
        reference_slug='gstin',
        registry_check='verify_gstin',
        identifier_fields=('gstin', 'registrationNumber'),
    ),
    VerificationStrategy(
        name='Certificate of Incorporation',
        aliases=('Incorporation Certificate',),
        keyword_rules=KeywordRules(
            required=('CERTIFICATE OF INCORPORATION', 'REGISTRAR OF COMPANIES',
                      'Corporate Identity Number', 'CIN', 'Companies Act'),
            any_of=('Private Limited', 'Public Limited', 'Date of Incorporation'),
            patterns=(r'[LU][0-9]{5}[A-Z]{2}[0-9]{4}[A-Z]{3}[0-9]{6}',),
        ),
        registry_check='verify_cin',
        identifier_fields=('cin', 'corporateIdentityNumber', 'registrationNumber'),
    ),
    VerificationStrategy(
        name='Factory License',
        aliases=('Factory License Form 4',),
        keyword_rules=KeywordRules(
            required=('FACTORY LICENSE', 'Form 4', 'Factories Act',
                      'Directorate of Industrial Safety', 'Government of Tamil Nadu'),
            any_of=('Maximum Workers', 'Installed Power', 'License Number', 'Renewal'),
            patterns=(r'TN/[0-9]{4,6}/[0-9]{4}',),
        ),
        layout_threshold=0.75,
        reference_slug='factory',
        registry_check='verify_factory_license',
        identifier_fields=('licenseNumber', 'licenseNo'),
    ),
    VerificationStrategy(
        name='EPF Registration',
        layout_threshold=0.75,
        reference_slug='epf-registration',
        registry_check='verify_epf',
        identifier_fields=('epfCode', 'code', 'establishmentCode'),
    ),
    VerificationStrategy(
        name='EPF ECR Challan',
        layout_threshold=0.75,
        reference_slug='epf-challan',
        registry_check='verify_trrn',
        identifier_fields=('trrn',),
    ),
    VerificationStrategy(
        name='ESIC Registration',
        layout_threshold=0.75,
        reference_slug='esic',
        registry_check='verify_esic',
        identifier_fields=('esicCode', 'code'),
    ),
    VerificationStrategy(
        name='TNPCB Consent',
        aliases=('TNPCB Consent to Operate',),
        layout_threshold=0.75,
        reference_slug='tnpcb',
        registry_check='verify_tnpcb',
        identifier_fields=('consentOrderNumber', 'consentOrderNo'),
    ),
    VerificationStrategy(
        name='Fire NOC',
        layout_threshold=0.70,
        reference_slug='fire-noc',
        registry_check='verify_fire_noc',
        identifier_fields=('nocNumber',),
    ),
    VerificationStrategy(
        name='ISO 9001',
        aliases=('ISO 9001 Certificate',),
        keyword_rules=KeywordRules(
            required=('ISO 9001', 'QUALITY MANAGEMENT', 'CERTIFICATE',
                      'International Organization for Standardization'),
            any_of=ISO_ANY_OF,
        ),
        registry_check='verify_iso',
        identifier_fields=('certificateNumber',),
    ),
    VerificationStrategy(
        name='ISO 14001',
        aliases=('ISO 14001 Certificate',),
        keyword_rules=KeywordRules(
            required=('ISO 14001', 'ENVIRONMENTAL MANAGEMENT', 'CERTIFICATE'),
            any_of=('Environmental Policy', 'EMS', 'Continual Improvement'),
        ),
        registry_check='verify_iso',
        identifier_fields=('certificateNumber',),
    ),
    VerificationStrategy(
        name='ISO 45001',
        aliases=('ISO 45001 Certificate',),
        keyword_rules=KeywordRules(
            required=('ISO 45001', 'OCCUPATIONAL HEALTH', 'SAFETY MANAGEMENT', 'CERTIFICATE'),
            any_of=('OH&S', 'Worker Participation', 'Hazard Identification'),
        ),
        registry_check='verify_iso',
        identifier_fields=('certificateNumber',),
    ),
    VerificationStrategy(
        name='GOTS Certificate',
        aliases=('GOTS',),
        keyword_rules=KeywordRules(
            required=('GOTS', 'GLOBAL ORGANIC TEXTILE STANDARD', 'CERTIFICATE', 'ORGANIC'),
            any_of=('Transaction Certificate', 'Scope Certificate', 'Organic Cotton',
                    'Processing Categories'),
        ),
        registry_check='verify_gots',
        identifier_fields=('licenseNumber', 'certificateNumber'),
    ),
    VerificationStrategy(
        name='OEKO-TEX Certificate',
        aliases=('OEKO-TEX', 'OEKO-TEX Standard 100'),
        keyword_rules=KeywordRules(
            required=('OEKO-TEX', 'STANDARD 100', 'CERTIFICATE', 'CONFIDENCE IN TEXTILES'),
            any_of=('Product Class', 'Test Institute', 'Ecology', 'Human Health'),
        ),
        registry_check='verify_oeko_tex',
        identifier_fields=('certificateNumber',),
    ),
)

GENERIC_STRATEGY = VerificationStrategy(name='Generic')

_BY_NAME = {}
for _strategy in STRATEGIES:
    for _key in (_strategy.name,) + _strategy.aliases:
        _BY_NAME[_key.strip().lower()] = _strategy


def get_strategy(document_type):
    strategy = _BY_NAME.get((document_type or '').strip().lower())
    if strategy is None:
        logger.info("get_strategy: no strategy for '%s', using generic", document_type)
        return GENERIC_STRATEGY
    return strategy


def evaluate_keywords(rules, text):
    """Case-insensitive keyword gate run before the AI call."""
    if rules is None:
        return KeywordCheck(passed=True)

    haystack = (text or '').lower()

    missing = tuple(kw for kw in rules.required if kw.lower() not in haystack)
    if missing:
        return KeywordCheck(
            passed=False,
            reason="Document appears to be incorrect. Missing required keywords: " + ", ".join(missing),
            missing=missing,
        )

    if rules.any_of and not any(kw.lower() in haystack for kw in rules.any_of):
        return KeywordCheck(
            passed=False,
            reason="Document appears to be incorrect. Must contain at least one of: " + ", ".join(rules.any_of),
            missing=rules.any_of,
        )

    if rules.patterns and not any(re.search(p, text or '', re.IGNORECASE) for p in rules.patterns):
        return KeywordCheck(
            passed=False,
            reason="Document appears to be incorrect. Required format not found.",
        )

    return KeywordCheck(passed=True, reason="Document type keywords found")


def resolve_reference_image(strategy, base_dir=None):
    """Path of the reference layout image for a strategy, or None when absent on disk."""
    if not strategy.reference_slug:
        return None

    base = Path(base_dir or settings.REFERENCE_DOCS_DIR)
    for ext in REFERENCE_EXTENSIONS:
        candidate = base / f"{strategy.reference_slug}{ext}"
        if candidate.is_file():
            return candidate

    logger.warning(
        "resolve_reference_image: no reference image for %s under %s",
        strategy.name, base,
    )
    return None
