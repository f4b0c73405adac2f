# core/constants.py
JOB_STATUS_DRAFT = 'DRAFT'
JOB_STATUS_OPEN = 'OPEN'
JOB_STATUS_BIDDING = 'BIDDING'
JOB_STATUS_IN_PROGRESS = 'IN_PROGRESS'
JOB_STATUS_PENDING_CONFIRMATION = 'PENDING_CONFIRMATION'
JOB_STATUS_COMPLETED = 'COMPLETED'
JOB_STATUS_CANCELLED = 'CANCELLED'

JOB_STATUS_CHOICES = (
    (JOB_STATUS_DRAFT, 'Draft'),                      # Saved but not published
    (JOB_STATUS_OPEN, 'Open'),                        # Published, no bids yet
    (JOB_STATUS_BIDDING, 'Bidding'),                  # At least one bid placed
    (JOB_STATUS_IN_PROGRESS, 'In Progress'),          # A bid was accepted
    (JOB_STATUS_PENDING_CONFIRMATION, 'Pending Confirmation'),  # Provider marked done
    (JOB_STATUS_COMPLETED, 'Completed'),              # Requester confirmed
    (JOB_STATUS_CANCELLED, 'Cancelled'),
)

# Jobs in these states can be edited / receive bids / be cancelled
JOB_EDITABLE_STATUSES = (JOB_STATUS_DRAFT, JOB_STATUS_OPEN)
JOB_BIDDABLE_STATUSES = (JOB_STATUS_OPEN, JOB_STATUS_BIDDING)
JOB_CANCELLABLE_STATUSES = (JOB_STATUS_DRAFT, JOB_STATUS_OPEN, JOB_STATUS_BIDDING)
JOB_CONFIRMABLE_STATUSES = (JOB_STATUS_IN_PROGRESS, JOB_STATUS_PENDING_CONFIRMATION)

BID_STATUS_PENDING = 'PENDING'
BID_STATUS_ACCEPTED = 'ACCEPTED'
BID_STATUS_REJECTED = 'REJECTED'
BID_STATUS_WITHDRAWN = 'WITHDRAWN'

BID_STATUS_CHOICES = (
    (BID_STATUS_PENDING, 'Pending'),      # Provider bid, awaiting requester response
    (BID_STATUS_ACCEPTED, 'Accepted'),    # Requester accepted this bid
    (BID_STATUS_REJECTED, 'Rejected'),    # Requester rejected, or another bid was accepted
    (BID_STATUS_WITHDRAWN, 'Withdrawn'),  # Provider pulled the bid back
)

BID_ACTIVE_STATUSES = (BID_STATUS_PENDING, BID_STATUS_ACCEPTED)

URGENCY_LEVEL_CHOICES = (
    ('LOW', 'Low'),
    ('MEDIUM', 'Medium'),
    ('HIGH', 'High'),
)

CREDIT_PURCHASE = 'PURCHASE'
CREDIT_BID_SPENT = 'BID_SPENT'
CREDIT_REFUND = 'REFUND'

CREDIT_TRANSACTION_CHOICES = (
    (CREDIT_PURCHASE, 'Purchase'),
    (CREDIT_BID_SPENT, 'Bid Spent'),
    (CREDIT_REFUND, 'Refund'),
)

BID_COST = 1

CREDIT_PACKAGES = {
    'pkg-10': {'name': 'Quick Start', 'credits': 10, 'price': 189},
    'pkg-35': {'name': 'Growth Pack', 'credits': 35, 'price': 489},
    'pkg-75': {'name': 'Eco Advantage', 'credits': 75, 'price': 889, 'is_popular': True},
    'pkg-175': {'name': 'Master Pack', 'credits': 175, 'price': 1489},
}

SERVICE_CATEGORIES = (
    'elektrik',
    'cilingir',
    'klima',
    'beyaz-esya',
    'tesisat',
)

SERVICE_CATEGORY_CHOICES = (
    ('elektrik', 'Electrical'),
    ('cilingir', 'Locksmith'),
    ('klima', 'Air Conditioning'),
    ('beyaz-esya', 'Appliances'),
    ('tesisat', 'Plumbing'),
)

DEFAULT_SERVICE_CATEGORY = 'elektrik'

ALL_DISTRICTS = 'all'


def normalize_service_category(category):
    """Return category if it is a known service category, else the default one."""
    if category in SERVICE_CATEGORIES:
        return category
    return DEFAULT_SERVICE_CATEGORY
