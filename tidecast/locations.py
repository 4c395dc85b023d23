"""
Preset forecast locations.

Each location has coordinates and the timezone the sea-level source is asked
to report in. Day grouping follows that timezone's calendar.
"""

DEFAULT_LOCATION = 'qingdao'

LOCATIONS = {
    # Yellow Sea / East China Sea
    'qingdao': {
        'name': 'Qingdao, China',
        'lat': 36.0649,
        'lon': 120.3804,
        'timezone': 'Asia/Shanghai',
    },
    'dalian': {
        'name': 'Dalian, China',
        'lat': 38.9140,
        'lon': 121.6147,
        'timezone': 'Asia/Shanghai',
    },
    'xiamen': {
        'name': 'Xiamen, China',
        'lat': 24.4798,
        'lon': 118.0894,
        'timezone': 'Asia/Shanghai',
    },
    'incheon': {
        'name': 'Incheon, South Korea',
        'lat': 37.4563,
        'lon': 126.5052,
        'timezone': 'Asia/Seoul',
    },
    # Europe
    'saint_malo': {
        'name': 'Saint-Malo, France',
        'lat': 48.6493,
        'lon': -2.0257,
        'timezone': 'Europe/Paris',
    },
    # North America
    'bay_of_fundy': {
        'name': 'Bay of Fundy, Canada',
        'lat': 45.2733,
        'lon': -66.0633,
        'timezone': None,  # resolved from coordinates
    },
}
