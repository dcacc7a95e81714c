import numpy as np

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1, lon1, lat2, lon2):
    """
    Great-circle distance in km between (lat1, lon1) and (lat2, lon2).

    Works on scalars or numpy arrays (broadcast), so one hotspot can be
    measured against every existing report in a single call:

        haversine_km(h.latitude, h.longitude, lats, lons) -> ndarray
    """
    lat1, lon1, lat2, lon2 = map(np.radians, (lat1, lon1, lat2, lon2))

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    d = EARTH_RADIUS_KM * c
    if np.ndim(d) == 0:
        return float(d)
    return d


def destination_point(lat: float, lon: float, bearing_deg: float, distance_km: float):
    """Point reached travelling `distance_km` from (lat, lon) on a fixed initial bearing."""
    phi1 = np.radians(lat)
    lam1 = np.radians(lon)
    theta = np.radians(bearing_deg)
    delta = distance_km / EARTH_RADIUS_KM

    phi2 = np.arcsin(
        np.sin(phi1) * np.cos(delta) + np.cos(phi1) * np.sin(delta) * np.cos(theta)
    )
    lam2 = lam1 + np.arctan2(
        np.sin(theta) * np.sin(delta) * np.cos(phi1),
        np.cos(delta) - np.sin(phi1) * np.sin(phi2),
    )

    # normalise longitude to [-180, 180)
    lon2 = (np.degrees(lam2) + 540.0) % 360.0 - 180.0
    return float(np.degrees(phi2)), float(lon2)
