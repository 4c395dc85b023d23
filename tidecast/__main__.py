#!/usr/bin/env python3
"""
Print the tide forecast for a location.

    python -m tidecast [--location qingdao] [--model percentile] [--moon]
                       [--details] [--html week.html]
"""
import argparse
import logging
import sys

from tabulate import tabulate

from .config import Settings
from .errors import TideDataError
from .locations import LOCATIONS
from .models import ClassifierModel, clock_of, finite_or_none
from .render import render_week_html
from .tide_service import TideForecastService

logger = logging.getLogger('tidecast')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='tidecast', description=__doc__.strip().splitlines()[0])
    parser.add_argument('--location', choices=sorted(LOCATIONS), help='preset location')
    parser.add_argument('--model', choices=[m.value for m in ClassifierModel], help='tidal range model')
    parser.add_argument('--days', type=int, help='number of days to summarize')
    parser.add_argument('--moon', action='store_true', help='show moon phases')
    parser.add_argument('--details', action='store_true', help='print every high/low tide')
    parser.add_argument('--html', metavar='PATH', help='also write the chart page to PATH')
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser


def summary_rows(days):
    rows = []
    for day in days:
        rows.append([
            day.date_key,
            day.moon['phase'] if day.moon else '',
            day.tidal_range.label,
            ' | '.join(clock_of(e.timestamp) for e in day.highs) or 'none',
            ' | '.join(clock_of(e.timestamp) for e in day.lows) or 'none',
        ])
    return rows


def event_rows(days):
    rows = []
    for day in days:
        for event in day.highs + day.lows:
            rows.append([day.date_key, clock_of(event.timestamp), event.kind.value.upper(),
                         finite_or_none(event.height_m)])
    rows.sort(key=lambda r: (r[0], r[1]))
    return rows


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    service = TideForecastService(settings)
    try:
        forecast = service.get_forecast(location_key=args.location, model=args.model, day_count=args.days)
    except (TideDataError, ValueError) as e:
        print(f"Error loading tide data: {e}", file=sys.stderr)
        return 1

    location = forecast['location']
    days = forecast['days']
    if args.moon:
        from .astronomy_service import AstronomyService
        days = AstronomyService().annotate_days(days, location['timezone'])

    print(f"{location['name']} ({location['timezone']}), model: {forecast['model'].value}\n")
    print(tabulate(summary_rows(days), headers=['Date', 'Moon', 'Tide', 'High', 'Low']))

    if args.details:
        print()
        print(tabulate(event_rows(days), headers=['Date', 'Time', 'Type', 'Height (m)'], floatfmt='.2f'))

    if args.html:
        html = render_week_html(
            days,
            title=f"{location['name']} - tide forecast",
            layout=settings.layout,
            now=service.local_now(location['timezone']),
        )
        with open(args.html, 'w', encoding='utf-8') as f:
            f.write(html)
        logger.info(f"Wrote {args.html}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
