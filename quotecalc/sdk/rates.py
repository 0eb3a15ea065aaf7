"""Standard rate tables.

These are the firm's published rates and the defaults for every
PricingConfig section. A pricing.yaml in the config directory overrides
any subset of them (see config.py).

Band tables are ordered from lowest to highest tier. Order matters only for
display; lookups fall back to the lowest-valued entry, not the first.
"""

# =============================================================================
# Bookkeeping
# =============================================================================

BOOKKEEPING_BASE_FEE = 150

# Setup fee = monthly fee x calendar month x multiplier.
# Example: $400/mo quoted in March -> 400 x 3 x 0.25 = $300
BOOKKEEPING_SETUP_MULTIPLIER = 0.25

REVENUE_MULTIPLIERS = {
    "<$10K": 1.0,
    "10K-25K": 1.0,
    "25K-75K": 2.2,
    "75K-250K": 3.5,
    "250K-1M": 5.0,
    "1M+": 7.0,
}

TRANSACTION_SURCHARGES = {
    "<100": 0,
    "100-300": 100,
    "300-600": 500,
    "600-1000": 800,
    "1000-2000": 1200,
    "2000+": 1600,
}

# Monthly multipliers, shared by bookkeeping and TaaS
INDUSTRY_MULTIPLIERS = {
    "Software/SaaS": 1.0,
    "Professional Services": 1.0,
    "Consulting": 1.0,
    "Healthcare/Medical": 1.4,
    "Real Estate": 1.25,
    "Property Management": 1.3,
    "E-commerce/Retail": 1.35,
    "Restaurant/Food Service": 1.6,
    "Hospitality": 1.6,
    "Construction/Trades": 1.5,
    "Manufacturing": 1.45,
    "Transportation/Logistics": 1.4,
    "Nonprofit": 1.2,
    "Law Firm": 1.3,
    "Accounting/Finance": 1.1,
    "Marketing/Advertising": 1.15,
    "Insurance": 1.35,
    "Automotive": 1.4,
    "Education": 1.25,
    "Fitness/Wellness": 1.3,
    "Entertainment/Events": 1.5,
    "Agriculture": 1.45,
    "Technology/IT Services": 1.1,
    "Multi-entity/Holding Companies": 1.35,
    "Other": 1.2,
}

CLEANUP_FEE_PER_PERIOD = 100

# =============================================================================
# Tax as a Service
# =============================================================================

TAAS_BASE_FEE = 150
TAAS_ENTITY_THRESHOLD = 5  # entities included in base
TAAS_FEE_PER_ENTITY = 75
TAAS_INCLUDED_STATES = 1
TAAS_FEE_PER_STATE = 50
TAAS_MAX_STATES = 50
TAAS_INTERNATIONAL_FEE = 200
TAAS_OWNER_THRESHOLD = 5  # owners included in base
TAAS_FEE_PER_OWNER = 25
TAAS_FEE_PER_1040_OWNER = 25

TAAS_BOOKKEEPING_QUALITY_UPCHARGES = {
    "Clean (Seed)": 0,
    "Clean / New": 0,
    "Not Clean": 25,
    "Messy": 25,
}

TAAS_REVENUE_MULTIPLIERS = {
    "<$10K": 1.0,
    "10K-25K": 1.2,
    "25K-75K": 1.4,
    "75K-250K": 1.6,
    "250K-1M": 1.8,
    "1M+": 2.0,
}

PRIOR_YEAR_FILING_FEE_PER_YEAR = 1500

# =============================================================================
# Payroll
# =============================================================================

PAYROLL_BASE_FEE = 100  # up to 3 employees in 1 state
PAYROLL_INCLUDED_EMPLOYEES = 3
PAYROLL_FEE_PER_EMPLOYEE = 12
PAYROLL_INCLUDED_STATES = 1
PAYROLL_FEE_PER_STATE = 25

# =============================================================================
# AP / AR
# =============================================================================

AP_AR_BASE_FEE = 150

AP_AR_VOLUME_SURCHARGES = {
    "0-25": 0,
    "26-100": 100,
    "101-250": 250,
    "251+": 500,
}

AP_AR_INCLUDED_COUNT = 5  # "5 or less" payees/customers
AP_AR_FEE_PER_COUNT = 10
AP_AR_SELECTOR_MAX = 10  # selector value meaning "10+"

# Advanced is full service, so the whole subtotal scales
AP_AR_TIER_MULTIPLIERS = {
    "lite": 1.0,
    "advanced": 2.5,
}

# =============================================================================
# One-time services
# =============================================================================

AGENT_OF_SERVICE_BASE_FEE = 150
AGENT_OF_SERVICE_FEE_PER_STATE = 150
AGENT_OF_SERVICE_COMPLEX_CASE_FEE = 300

CFO_PAY_AS_YOU_GO_HOURS = 8
CFO_PAY_AS_YOU_GO_RATE = 300

# Prepaid bundle hours -> discounted hourly rate
CFO_BUNDLE_RATES = {
    8: 295,
    16: 290,
    32: 285,
    40: 280,
}

# =============================================================================
# Add-ons, discounts, rounding
# =============================================================================

SERVICE_TIER_FEES = {
    "Automated": 0,
    "Guided": 79,
    "Concierge": 249,
}

QBO_MONTHLY_FEE = 60

# Off bookkeeping monthly when bookkeeping and TaaS are quoted together
BUNDLE_DISCOUNT_PERCENTAGE = 0.5

MONTHLY_ROUNDING_STEP = 25
