from agent_portal.models.profile import Profile, ProfileRole
from agent_portal.models.retailer import Retailer, RetailerStatus, Terminal, TerminalStatus
from agent_portal.models.sale import Sale, VoucherType
from agent_portal.models.transaction import Transaction, TransactionType
from agent_portal.models.bank_account import BankAccount

__all__ = [
    "Profile",
    "ProfileRole",
    "Retailer",
    "RetailerStatus",
    "Terminal",
    "TerminalStatus",
    "Sale",
    "VoucherType",
    "Transaction",
    "TransactionType",
    "BankAccount",
]
