"""
SMS Rules Module
Defines debit/credit direction, spam screening, bank/app identification
and merchant categorization rules for transaction notifications.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class TransactionType(Enum):
    """Transaction direction enumeration."""
    DEBIT = "debit"
    CREDIT = "credit"


# Verbs that announce money leaving or entering the account
DEBIT_VERBS = {"debited", "debit", "paid", "sent", "spent"}
CREDIT_VERBS = {"credited", "credit", "received"}

# Promotional/phishing messages that merely look like notifications
SPAM_KEYWORDS = [
    'won', 'winner', 'lottery', 'prize', 'congratulations', 'lucky',
    'claim', 'reward', 'gift', 'free', 'bonus', 'cashback',
    'offer expires', 'limited time', 'act now', 'urgent',
    'verify', 'suspended', 'blocked', 'update', 'click here',
    'download app', 'install now', 'register', 'subscribe',
]

BANK_IDENTIFIERS = {
    'SBI': ['SBI', 'SBIUPI', 'State Bank'],
    'HDFC': ['HDFC', 'HDFCBK', 'HDFCBANK'],
    'ICICI': ['ICICI', 'ICICIBK', 'ICICIBANK'],
    'AXIS': ['AXIS', 'AXISBK', 'AXISBANK'],
    'PNB': ['PNB', 'PNBBK', 'Punjab National'],
    'BOB': ['BOB', 'BOBBANK', 'Bank of Baroda'],
    'CANARA': ['CANARA', 'CANARABK', 'Canara Bank'],
    'UNION': ['UNION', 'UNIONBK', 'Union Bank'],
    'KOTAK': ['KOTAK', 'KOTAKBK', 'Kotak Mahindra'],
}

UPI_APP_IDENTIFIERS = {
    'GPAY': ['Google Pay', 'GPAY', 'G Pay'],
    'PHONEPE': ['PhonePe', 'PHONEPE'],
    'PAYTM': ['Paytm', 'PAYTM'],
    'BHIM': ['BHIM', 'BHIMUPI'],
    'AMAZON': ['Amazon Pay', 'AMAZONPAY'],
    'MOBIKWIK': ['MobiKwik', 'MOBIKWIK'],
}

UNKNOWN_SOURCE = 'UNKNOWN'

# Checked in order; the first bucket with a matching keyword wins
CATEGORY_KEYWORDS = [
    ('Food & Dining', ['swiggy', 'zomato', 'uber eats', 'food', 'restaurant', 'cafe',
                       'dominos', 'kfc', 'mcdonald']),
    ('Transportation', ['uber', 'ola', 'metro', 'bus', 'taxi', 'petrol', 'fuel', 'irctc']),
    ('Shopping', ['amazon', 'flipkart', 'myntra', 'ajio', 'shopping', 'mall', 'store']),
    ('Entertainment', ['netflix', 'amazon prime', 'hotstar', 'spotify', 'movie', 'cinema',
                       'bookmyshow']),
    ('Utilities', ['electricity', 'gas', 'water', 'internet', 'mobile', 'recharge', 'bill']),
    ('Healthcare', ['pharma', 'medicine', 'hospital', 'clinic', 'doctor', 'health']),
]

HIGH_VALUE_CATEGORY = 'EMI/Rent'
DEFAULT_CATEGORY = 'Others'


def direction_from_verb(verb: str) -> TransactionType:
    """
    Map a notification verb to a transaction direction.

    Args:
        verb: Verb captured from the message (e.g. "debited", "received")

    Returns:
        TransactionType for the verb

    Raises:
        ValueError: If the verb is not a known debit/credit verb
    """
    word = verb.strip().lower()
    if word in DEBIT_VERBS:
        return TransactionType.DEBIT
    if word in CREDIT_VERBS:
        return TransactionType.CREDIT
    raise ValueError(f"Unknown transaction verb: {verb}")


def is_spam_message(message: str) -> bool:
    """
    Check whether a message looks promotional rather than transactional.

    Args:
        message: Raw message text

    Returns:
        True if any spam keyword occurs in the message (case-insensitive)
    """
    lower_message = message.lower()
    for keyword in SPAM_KEYWORDS:
        if keyword in lower_message:
            logger.debug(f"Spam keyword '{keyword}' found in message")
            return True
    return False


def identify_source(message: str, sender: Optional[str] = None) -> str:
    """
    Identify the bank or UPI app that sent a notification.

    Banks are checked before UPI apps, since bank messages often mention
    the app that initiated the payment.

    Args:
        message: Raw message text
        sender: Optional sender address (e.g. "VM-HDFCBK")

    Returns:
        Bank/app code such as "HDFC" or "GPAY", or "UNKNOWN"
    """
    combined = f"{message} {sender or ''}".upper()

    for bank_code, identifiers in BANK_IDENTIFIERS.items():
        if any(identifier.upper() in combined for identifier in identifiers):
            return bank_code

    for app_code, identifiers in UPI_APP_IDENTIFIERS.items():
        if any(identifier.upper() in combined for identifier in identifiers):
            return app_code

    return UNKNOWN_SOURCE


def categorize_merchant(
    merchant: str,
    amount: Decimal,
    high_value_threshold: Decimal = Decimal("10000")
) -> str:
    """
    Assign a spending category from the merchant name.

    Args:
        merchant: Merchant label from the record
        amount: Transaction amount
        high_value_threshold: Amounts above this fall back to EMI/Rent

    Returns:
        Category name
    """
    lower_merchant = merchant.lower()

    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lower_merchant for keyword in keywords):
            return category

    if amount > high_value_threshold:
        return HIGH_VALUE_CATEGORY

    return DEFAULT_CATEGORY


def format_amount_display(amount: Decimal, transaction_type: TransactionType) -> str:
    """
    Format amount for display with sign.

    Args:
        amount: Non-negative amount
        transaction_type: Direction of the transaction

    Returns:
        Formatted string: "-50.00" for debits, "+50.00" for credits
    """
    sign = "-" if transaction_type == TransactionType.DEBIT else "+"
    return f"{sign}{amount:.2f}"
