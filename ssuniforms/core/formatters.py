"""Display formatting helpers (currency, dates, phone numbers, stock labels)"""
import math
import re
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone
from django.utils.dateparse import parse_datetime, parse_date

CURRENCY_SYMBOL = '₹'


def _group_indian(digits: str) -> str:
    """Group an integer digit string the Indian way: 12,34,567"""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ','.join(groups) + ',' + tail


def format_number(num, max_fraction_digits=3) -> str:
    """Format a number with the Indian numbering system (lakhs, crores)"""
    value = Decimal(str(num))
    quantum = Decimal(1).scaleb(-max_fraction_digits)
    value = value.quantize(quantum, rounding=ROUND_HALF_UP)
    sign = '-' if value < 0 else ''
    integer_part, _, fraction = f"{abs(value):f}".partition('.')
    fraction = fraction.rstrip('0')
    formatted = _group_indian(integer_part)
    if fraction:
        formatted = f"{formatted}.{fraction}"
    return f"{sign}{formatted}"


def format_price(price) -> str:
    """Format a price in Indian Rupees, 0-2 fraction digits"""
    formatted = format_number(price, max_fraction_digits=2)
    if formatted.startswith('-'):
        return f"-{CURRENCY_SYMBOL}{formatted[1:]}"
    return f"{CURRENCY_SYMBOL}{formatted}"


def _to_datetime(value):
    if isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is None:
            parsed_date = parse_date(value)
            if parsed_date is None:
                raise ValueError(f"Unrecognised date: {value}")
            return datetime(parsed_date.year, parsed_date.month, parsed_date.day)
        value = parsed
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raise TypeError(f"Cannot format {type(value).__name__} as a date")


def format_date(value) -> str:
    """12 Jan 2025, 03:15 pm"""
    dt = _to_datetime(value)
    return f"{dt.day} {dt.strftime('%b %Y')}, {dt.strftime('%I:%M')} {dt.strftime('%p').lower()}"


def format_date_only(value) -> str:
    """12 Jan 2025"""
    dt = _to_datetime(value)
    return f"{dt.day} {dt.strftime('%b %Y')}"


def title_case(text: str) -> str:
    return ' '.join(word[:1].upper() + word[1:] for word in text.lower().split(' '))


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + '...'


def format_phone_number(phone: str) -> str:
    """Format 10-digit numbers as +91 XXXXX XXXXX, leave anything else alone"""
    cleaned = re.sub(r'\D', '', phone or '')
    if len(cleaned) == 10:
        return f"+91 {cleaned[:5]} {cleaned[5:]}"
    return phone


def calculate_percentage(value, total) -> int:
    if not total:
        return 0
    ratio = Decimal(str(value)) / Decimal(str(total)) * 100
    return int(ratio.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def get_stock_status(stock) -> dict:
    """Dashboard stock signal: out / low (<6) / medium (<20) / high"""
    if stock == 0:
        return {'status': 'out', 'text': 'Out of Stock'}
    if stock < 6:
        return {'status': 'low', 'text': 'Low Stock'}
    if stock < 20:
        return {'status': 'medium', 'text': 'Medium Stock'}
    return {'status': 'high', 'text': 'Good Stock'}


def get_initials(name: str) -> str:
    return ''.join(word[:1] for word in name.split(' ')).upper()[:2]


def format_file_size(num_bytes: int) -> str:
    if num_bytes == 0:
        return '0 Bytes'
    units = ['Bytes', 'KB', 'MB', 'GB']
    index = min(int(math.floor(math.log(num_bytes, 1024))), len(units) - 1)
    size = round(num_bytes / math.pow(1024, index), 2)
    return f"{size:g} {units[index]}"
