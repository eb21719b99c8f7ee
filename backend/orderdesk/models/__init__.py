from .auth import User, SessionToken
from .customers import Customer
from .sales import SalesOrder, Revision
from .documents import Document
from .payments import Payment, Allocation, AllocationLock
from .jobs import JobRun

__all__ = [
    'User', 'SessionToken',
    'Customer',
    'SalesOrder', 'Revision',
    'Document',
    'Payment', 'Allocation', 'AllocationLock',
    'JobRun',
]
