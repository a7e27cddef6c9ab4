from datetime import timedelta, datetime # For date calculations.

def parse_date_range(request_args, default_range_str='last_7_days', get_previous_period=False):
    """
    Parses date range parameters from Flask request arguments (request.args).
    It supports predefined ranges like 'last_7_days', 'last_30_days', and 'custom'
    date ranges specified by 'start_date' and 'end_date' parameters.
    Optionally, it can return the dates for the period immediately preceding the main period.

    Args:
        request_args (werkzeug.datastructures.MultiDict): The request arguments object
                                                          (typically `request.args`).
        default_range_str (str, optional): The range used when 'date_range' is missing or unknown.
                                           Defaults to 'last_7_days'.
        get_previous_period (bool, optional): If True, the dates of the period of equal length
                                              that ends the day before the main period starts
                                              are returned instead. Defaults to False.

    Returns:
        tuple: (start_date_obj, end_date_obj, error_response_tuple).
               error_response_tuple is None on success, otherwise
               ({"message": "..."}, http_status_code).
    """
    date_range_str = request_args.get('date_range', default_range_str)
    today = datetime.utcnow().date() # Stored timestamps are UTC.
    start_date_obj, end_date_obj = None, None

    # --- Determine date objects based on date_range_str ---
    if date_range_str not in ('last_7_days', 'last_30_days', 'custom'):
        date_range_str = default_range_str # Unknown ranges fall back to the default.

    if date_range_str == 'last_7_days':
        end_date_obj = today
        start_date_obj = today - timedelta(days=6) # 7 days including today.
    elif date_range_str == 'last_30_days':
        end_date_obj = today
        start_date_obj = today - timedelta(days=29)
    elif date_range_str == 'custom':
        start_date_param = request_args.get('start_date')
        end_date_param = request_args.get('end_date')
        if not (start_date_param and end_date_param):
            return None, None, ({"message": "Custom date range requires 'start_date' and 'end_date' parameters (YYYY-MM-DD)."}, 400)
        try:
            start_date_obj = datetime.strptime(start_date_param, '%Y-%m-%d').date()
            end_date_obj = datetime.strptime(end_date_param, '%Y-%m-%d').date()
        except ValueError:
            return None, None, ({"message": "Invalid date format for custom range. Please use YYYY-MM-DD."}, 400)
        if start_date_obj > end_date_obj:
            return None, None, ({"message": "Start date cannot be after end date for custom range."}, 400)
    else:
        return None, None, ({"message": f"Invalid or unsupported default_range_str configured: {default_range_str}"}, 500)

    # --- Calculate previous period if requested ---
    if get_previous_period:
        duration_days = (end_date_obj - start_date_obj).days
        prev_end_date = start_date_obj - timedelta(days=1) # Ends the day before the main period starts.
        prev_start_date = prev_end_date - timedelta(days=duration_days)
        return prev_start_date, prev_end_date, None

    return start_date_obj, end_date_obj, None

def parse_days_arg(request_args, default=30, maximum=365):
    """
    Reads the 'days' look-back window from request arguments.

    Returns:
        tuple: (days, error_response_tuple) with the same error shape as parse_date_range.
    """
    raw_days = request_args.get('days')
    if raw_days is None or raw_days == '':
        return default, None
    try:
        days = int(raw_days)
    except ValueError:
        return None, ({"message": "'days' must be an integer."}, 400)
    if days < 1 or days > maximum:
        return None, ({"message": f"'days' must be between 1 and {maximum}."}, 400)
    return days, None

def day_bounds(start_date_obj, end_date_obj):
    """Turns an inclusive date range into [start, end) datetimes for filtering DateTime columns."""
    return (datetime.combine(start_date_obj, datetime.min.time()),
            datetime.combine(end_date_obj + timedelta(days=1), datetime.min.time()))

# --- Metric formatting ---

def format_ctr(clicks, impressions):
    """Click-through rate as displayed by the dashboard, e.g. "2.41%"."""
    if not impressions:
        return "0.00%"
    return f"{clicks / impressions * 100:.2f}%"

def format_cpc(spend_cents, clicks):
    """Cost per click in dollars, e.g. "$0.87". Spend is in cents."""
    if not clicks:
        return "$0.00"
    return f"${spend_cents / 100 / clicks:.2f}"

def percent_change(current, previous):
    """Change from `previous` to `current` in percent, rounded to one decimal."""
    if not previous:
        return 100.0 if current else 0.0 # No baseline: any activity counts as a full increase.
    return round((current - previous) / previous * 100, 1)

def rollup_daily_metrics(performance_rows):
    """
    Sums PerformanceData rows per calendar day.

    Args:
        performance_rows (iterable): PerformanceData rows (any order, any platform campaign).

    Returns:
        list: One dict per day that has data, sorted by date:
              {date: "YYYY-MM-DD", impressions, clicks, conversions, spend (cents),
               ctr (percent, float), cpc (dollars, float)}.
    """
    days = {}
    for row in performance_rows:
        if row.date is None:
            continue
        day_str = row.date.date().isoformat()
        day = days.setdefault(day_str, {
            'date': day_str,
            'impressions': 0,
            'clicks': 0,
            'conversions': 0,
            'spend': 0,
        })
        day['impressions'] += row.impressions or 0
        day['clicks'] += row.clicks or 0
        day['conversions'] += row.conversions or 0
        day['spend'] += row.spend or 0

    for day in days.values():
        day['ctr'] = day['clicks'] / day['impressions'] * 100 if day['impressions'] else 0
        day['cpc'] = day['spend'] / 100 / day['clicks'] if day['clicks'] else 0

    return [days[day_str] for day_str in sorted(days)]
