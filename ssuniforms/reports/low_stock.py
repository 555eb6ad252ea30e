"""
Low-stock report.

One row per item whose own stock is at or below the threshold (reported
under the "Standard" pseudo-size), plus one row per size variant that
tracks its own stock and is at or below the same threshold.
"""

STANDARD_SIZE = 'Standard'
DEFAULT_THRESHOLD = 10

# Severity bands, all bounds inclusive
SEVERITY_OUT = 'out'            # 0
SEVERITY_CRITICAL = 'critical'  # 1-3
SEVERITY_VERY_LOW = 'very_low'  # 4-5
SEVERITY_LOW = 'low'            # 6-10
SEVERITY_NORMAL = 'normal'      # 11+

SEVERITY_TEXT = {
    SEVERITY_OUT: 'Out of Stock',
    SEVERITY_CRITICAL: 'Critical',
    SEVERITY_VERY_LOW: 'Very Low',
    SEVERITY_LOW: 'Low',
    SEVERITY_NORMAL: 'Normal',
}


def stock_severity(stock):
    if stock <= 0:
        return SEVERITY_OUT
    if stock <= 3:
        return SEVERITY_CRITICAL
    if stock <= 5:
        return SEVERITY_VERY_LOW
    if stock <= 10:
        return SEVERITY_LOW
    return SEVERITY_NORMAL


def progress_value(stock):
    """Fill level for a stock bar, where 20 units or more is full"""
    return min(stock / 20 * 100, 100)


def _row(catalogue, section, item, size, price, stock, item_type):
    severity = stock_severity(stock)
    return {
        'item_id': item['id'],
        'name': item['name'],
        'material': item.get('material', ''),
        'location': item.get('location', ''),
        'catalogue_id': catalogue['id'],
        'catalogue_name': catalogue['name'],
        'section_name': section['name'],
        'size': size,
        'price': price,
        'current_stock': stock,
        'item_type': item_type,
        'severity': severity,
        'severity_text': SEVERITY_TEXT[severity],
        'progress': progress_value(stock),
    }


def _matches_search(row, search):
    if not search:
        return True
    search = search.lower()
    return (
        search in row['name'].lower()
        or search in row['catalogue_name'].lower()
        or search in (row['location'] or '').lower()
    )


def build_low_stock_report(catalogues, threshold=DEFAULT_THRESHOLD, catalogue_id=None, size=None, search=''):
    """
    Low-stock rows for the catalogue tree, then filtered by catalogue id,
    size label and free text (item name, catalogue name, location).

    `sizes` lists the sorted distinct size labels of all rows before
    filtering, for building a size picker.
    """
    rows = []
    for catalogue in catalogues:
        for section in catalogue['sections']:
            for item in section['items']:
                if item['stock'] <= threshold:
                    rows.append(_row(catalogue, section, item, STANDARD_SIZE, item['price'], item['stock'], 'main'))
                for size_row in item.get('sizes') or []:
                    size_stock = size_row.get('stock')
                    if size_stock is not None and size_stock <= threshold:
                        rows.append(_row(catalogue, section, item, size_row['size'], size_row['price'],
                                         size_stock, 'size_variant'))

    sizes = sorted({row['size'] for row in rows})

    filtered = [
        row for row in rows
        if (catalogue_id in (None, '', 'all') or str(row['catalogue_id']) == str(catalogue_id))
        and (size in (None, '', 'all') or row['size'] == size)
        and _matches_search(row, search)
    ]

    summary = {
        'out_of_stock': sum(1 for row in filtered if row['current_stock'] == 0),
        'critical': sum(1 for row in filtered if 0 < row['current_stock'] <= 3),
        'low': sum(1 for row in filtered if 3 < row['current_stock'] <= 10),
        'total_units': sum(row['current_stock'] for row in filtered),
    }

    return {
        'threshold': threshold,
        'count': len(filtered),
        'items': filtered,
        'sizes': sizes,
        'summary': summary,
    }
