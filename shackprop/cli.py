"""proptool - HF propagation estimates from the command line.

Usage:
  proptool now                           # station MUF/LUF and band status
  proptool path JN58td                   # path forecast to a locator
  proptool path 40.7 -74.0 --freq 145.5  # path to lat/lon with VHF link budget
  proptool sun [LOCATOR]                 # sunrise/sunset at station (and DX)
  proptool grid                          # MUF grid summary per reference band

Station location comes from the config file (see config.py) or the
LOCATOR / QTH_LAT / QTH_LON environment variables.
"""

import argparse
import sys
from pathlib import Path

from .band_utils import REFERENCE_BANDS, freq_to_band
from .config import load_config
from .errors import PropagationError
from .geo_utils import bearing_to_direction, lat_lon_to_dms
from .service import PropagationService


def cmd_now(service: PropagationService):
    data = service.summary()
    print("Current Propagation (station)")
    print(f"  Locator:  {data['locator']}  ({lat_lon_to_dms(data['lat'], data['lon'])})")
    print(f"  Updated:  {data['updated']}")
    print()
    print(f"  SFI: {data['sfi']:.0f}   Kp: {data['kp'] if data['kp'] is not None else 'N/A'}")
    print(f"  foF2: {data['foF2']:.1f} MHz   MUF: {data['mufMHz']:.1f} MHz   LUF: {data['lufMHz']:.1f} MHz")
    print()
    print("Bands:")
    for b in data["bands"]:
        print(f"  {b['name']:>4} ({b['freq']:>4.0f} MHz): {b['status']}")


def cmd_path(service: PropagationService, target: list[str], freq, power, gain):
    if len(target) == 1:
        data = service.path_forecast(to_grid=target[0], freq_mhz=freq, power_w=power, gain_dbi=gain)
    elif len(target) == 2:
        try:
            lat, lon = float(target[0]), float(target[1])
        except ValueError:
            sys.exit(f"Not a lat/lon pair: {' '.join(target)}")
        data = service.path_forecast(to_lat=lat, to_lon=lon, freq_mhz=freq, power_w=power, gain_dbi=gain)
    else:
        sys.exit("path needs a locator or a lat lon pair")

    print(f"Path {data['from']['locator']} -> {data['to']['grid'] or ''} "
          f"({data['to']['lat']:.2f}, {data['to']['lon']:.2f})")
    print(f"  Distance: {data['distanceKm']} km, bearing {data['bearingDeg']:.0f}° "
          f"({bearing_to_direction(data['bearingDeg'])})")
    print(f"  foF2 (mid): {data['foF2Mid']:.1f} MHz   MUF: {data['mufPath']:.1f}   "
          f"FOT: {data['fotPath']:.1f}   LUF: {data['lufPath']:.1f}")
    print()
    print("Reliability:")
    for b in data["bands"]:
        bar = "#" * (b["reliability"] // 5)
        print(f"  {b['name']:>4}: {b['reliability']:3d}% {bar}")

    lb = data.get("linkBudget")
    if lb:
        print()
        print(f"Link budget @ {lb['freqMHz']} MHz ({freq_to_band(lb['freqMHz']) or 'out of band'}), "
              f"{lb['powerW']} W:")
        print(f"  EIRP: {lb['eirpDbm']} dBm   FSPL: {lb['pathLossDb']} dB   "
              f"RX: {lb['signalAtRepeaterDbm']} dBm")
        print(f"  Estimate: {lb['linkEstimate']}")
    if not data["lineOfSightClear"]:
        print(f"  Terrain blocks line of sight at {data['obstructedAtKm']} km")


def cmd_sun(service: PropagationService, dx_grid: str | None):
    data = service.sun(to_grid=dx_grid)

    def show(label, times):
        rise = times["sunriseUtc"] or "none (polar)"
        sset = times["sunsetUtc"] or "none (polar)"
        print(f"  {label:<9} rise {rise}  set {sset}  noon {times['noonUtc']}")

    print(f"Sun at {data['locator']}:")
    show("today", data["today"])
    show("tomorrow", data["tomorrow"])
    if "dx" in data:
        print(f"Sun at {dx_grid}:")
        show("today", data["dx"]["today"])
        show("tomorrow", data["dx"]["tomorrow"])


def cmd_grid(service: PropagationService):
    data = service.muf_grid()
    cells = [v for row in data["values"] for v in row]
    print(f"MUF grid from {data['locator']} (SFI {data['sfi']:.0f}), "
          f"{len(data['lats'])}x{len(data['lons'])} cells")
    print(f"  Path MUF range: {min(cells):.1f} - {max(cells):.1f} MHz")
    for name, freq in REFERENCE_BANDS:
        pct = 100 * sum(1 for v in cells if v >= freq) / len(cells)
        print(f"  {name:>4}: {pct:5.1f}% of the map above {freq:.0f} MHz")


def main(argv=None):
    parser = argparse.ArgumentParser(prog="proptool", description=__doc__,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("-c", "--config", type=Path, help="config file (YAML)")
    sub = parser.add_subparsers(dest="cmd", required=True)
    sub.add_parser("now", help="station MUF and band status")
    p_path = sub.add_parser("path", help="path forecast to a locator or lat/lon")
    p_path.add_argument("target", nargs="+", help="LOCATOR or LAT LON")
    p_path.add_argument("-f", "--freq", type=float, help="frequency in MHz for the link budget")
    p_path.add_argument("-p", "--power", type=float, help="TX power in W")
    p_path.add_argument("-g", "--gain", type=float, help="antenna gain in dBi")
    p_sun = sub.add_parser("sun", help="sunrise/sunset")
    p_sun.add_argument("dx", nargs="?", help="DX locator")
    sub.add_parser("grid", help="MUF grid summary")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    config["elevation_enabled"] = False
    service = PropagationService(config)

    try:
        if args.cmd == "now":
            cmd_now(service)
        elif args.cmd == "path":
            cmd_path(service, args.target, args.freq, args.power, args.gain)
        elif args.cmd == "sun":
            cmd_sun(service, args.dx)
        elif args.cmd == "grid":
            cmd_grid(service)
    except PropagationError as e:
        sys.exit(f"Error: {e.detail or e.code}")


if __name__ == "__main__":
    main()
