"""
Hand-off links that open the chosen route in the phone's maps app.
Formatting only: nothing here touches the network.
"""

from enum import Enum
from typing import List
from urllib.parse import urlencode

from saferoute.models import Coordinate, TravelMode


class Platform(str, Enum):
    IOS = "ios"
    ANDROID = "android"


class LinkVariant(str, Enum):
    SINGLE = "single"          # one URL per platform
    APP_FIRST = "app_first"    # maps-app deep link, web link as fallback


APPLE_DIRFLG    = {TravelMode.WALKING: "w", TravelMode.DRIVING: "d", TravelMode.CYCLING: "b"}
GOOGLE_APP_MODE = {TravelMode.WALKING: "walking", TravelMode.DRIVING: "driving", TravelMode.CYCLING: "bicycling"}
GOOGLE_NAV_MODE = {TravelMode.WALKING: "w", TravelMode.DRIVING: "d", TravelMode.CYCLING: "b"}
GOOGLE_WEB_MODE = GOOGLE_APP_MODE


def _platform(value) -> Platform:
    if isinstance(value, Platform):
        return value
    return Platform(str(value).strip().lower())


def web_link(origin: Coordinate, destination: Coordinate, mode: TravelMode) -> str:
    query = urlencode({
        "api": 1,
        "origin": origin.as_param(),
        "destination": destination.as_param(),
        "travelmode": GOOGLE_WEB_MODE[mode],
    }, safe=",")
    return f"https://www.google.com/maps/dir/?{query}"


def _app_link(platform: Platform, origin: Coordinate, destination: Coordinate, mode: TravelMode) -> str:
    if platform is Platform.IOS:
        query = urlencode({
            "saddr": origin.as_param(),
            "daddr": destination.as_param(),
            "directionsmode": GOOGLE_APP_MODE[mode],
        }, safe=",")
        return f"comgooglemaps://?{query}"
    return f"google.navigation:q={destination.as_param()}&mode={GOOGLE_NAV_MODE[mode]}"


def build_external_navigation_link(
    platform,
    origin: Coordinate,
    destination: Coordinate,
    mode=TravelMode.WALKING,
    variant=LinkVariant.SINGLE,
) -> str:
    platform, mode, variant = _platform(platform), TravelMode(mode), LinkVariant(variant)
    if variant is LinkVariant.APP_FIRST:
        return _app_link(platform, origin, destination, mode)
    if platform is Platform.IOS:
        query = urlencode({
            "saddr": origin.as_param(),
            "daddr": destination.as_param(),
            "dirflg": APPLE_DIRFLG[mode],
        }, safe=",")
        return f"maps://?{query}"
    return web_link(origin, destination, mode)


def build_navigation_links(platform, origin: Coordinate, destination: Coordinate, mode=TravelMode.WALKING) -> List[str]:
    """Deep link first, then the web URL to open if no maps app handles it."""
    return [
        build_external_navigation_link(platform, origin, destination, mode, LinkVariant.APP_FIRST),
        web_link(origin, destination, TravelMode(mode)),
    ]
