"""
Static capability tables.

Every role maps to a fixed set of view identifiers; views never branch on the
role string themselves, they ask ``can_access``.
"""

FARMER = 'farmer'
FPO = 'fpo'
PROCESSOR = 'processor'
RETAILER = 'retailer'
POLICYMAKER = 'policymaker'
ADMIN = 'admin'

ROLE_CHOICES = [
    (FARMER, 'Farmer'),
    (FPO, 'Farmer Producer Organisation'),
    (PROCESSOR, 'Processor'),
    (RETAILER, 'Retailer'),
    (POLICYMAKER, 'Policymaker'),
    (ADMIN, 'Administrator'),
]

ALL_ROLES = frozenset(code for code, _ in ROLE_CHOICES)
TRADE_ROLES = frozenset({FPO, PROCESSOR, RETAILER})
OVERSIGHT_ROLES = frozenset({POLICYMAKER, ADMIN})

# Navigation order is the order of this list.
VIEW_ROLES = [
    ('dashboard', ALL_ROLES),
    ('crops', frozenset({FARMER})),
    ('advisories', ALL_ROLES),
    ('inventory', frozenset({FARMER}) | TRADE_ROLES),
    ('warehouses', TRADE_ROLES | OVERSIGHT_ROLES),
    ('logistics', TRADE_ROLES),
    ('traceability', ALL_ROLES),
    ('credit', frozenset({FARMER})),
    ('analytics', OVERSIGHT_ROLES),
    ('stakeholders', OVERSIGHT_ROLES),
]

VIEW_IDS = frozenset(view for view, _ in VIEW_ROLES)

ROLE_VIEWS = {
    role: frozenset(view for view, roles in VIEW_ROLES if role in roles)
    for role in ALL_ROLES
}

# Which roles may append a traceability record at each stage. Admin may append any.
STAGE_ROLES = {
    'farm': frozenset({FARMER}),
    'procurement': frozenset({FPO}),
    'storage': frozenset({FPO, PROCESSOR}),
    'processing': frozenset({PROCESSOR}),
    'retail': frozenset({RETAILER}),
}


def views_for(role):
    """Set of view identifiers permitted for ``role`` (empty for unknown roles)."""
    return ROLE_VIEWS.get(role, frozenset())


def can_access(role, view):
    return view in views_for(role)


def navigation_for(role):
    """Permitted views in navigation order."""
    allowed = views_for(role)
    return [view for view, _ in VIEW_ROLES if view in allowed]


def can_record_stage(role, stage):
    if role == ADMIN:
        return stage in STAGE_ROLES
    return role in STAGE_ROLES.get(stage, frozenset())
