"""
JSON endpoints served by the Flask app underneath Dash.

All routes are read-only GETs that recompute from the asset files on each
request. Errors come back as `{"error": message}`:
    missing asset -> 404, bad parameter -> 400, anything else -> 500
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request

import dashboard_hook as SH
from air_quality import aggregate_measurements
from data_sources import AssetStore, feature_collection
from environment import filter_indices, parse_metric, parse_pollutant
from errors import AssetNotFound, InvalidQuery
from gdp_data import gdp_for_year, gdp_rows_from_asset
from regional import flatten_france_sensors, france_revenus, idf_revenus

logger = logging.getLogger(__name__)


def create_blueprint(store: AssetStore) -> Blueprint:
    bp = Blueprint("api", __name__, url_prefix="/api")

    @bp.errorhandler(AssetNotFound)
    def _not_found(err):
        return jsonify({"error": str(err)}), 404

    @bp.errorhandler(InvalidQuery)
    def _bad_request(err):
        return jsonify({"error": str(err)}), 400

    @bp.errorhandler(Exception)
    def _server_error(err):
        logger.exception("Unhandled error on %s", request.path)
        return jsonify({"error": "Failed to load data"}), 500

    @bp.route("/gdp-data")
    def gdp_data():
        return jsonify(gdp_rows_from_asset(store.load_gdp()))

    @bp.route("/gdp-data/<year>")
    def gdp_data_year(year):
        return jsonify(gdp_for_year(store.load_gdp(), year))

    @bp.route("/map-data")
    def map_data():
        return jsonify(feature_collection(store.load_map()))

    @bp.route("/pollutant-data")
    def pollutant_data():
        parameter = request.args.get("parameter") or SH.DEFAULT_PARAMETER
        year_month = request.args.get("yearMonth") or ""
        points = aggregate_measurements(store.load_pollutants(), parameter, year_month)
        return jsonify({
            "measurements": [p.to_json() for p in points],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    @bp.route("/environmental-indices")
    def environmental_indices():
        period = request.args.get("period") or None
        pollutant = parse_pollutant(request.args.get("pollutant")).value
        metric = parse_metric(request.args.get("metric")).value
        logger.info("Environmental indices: period=%s pollutant=%s metric=%s", period, pollutant, metric)
        return jsonify(filter_indices(store.load_indices(), period, pollutant, metric))

    @bp.route("/france-sensors")
    def france_sensors():
        return jsonify(flatten_france_sensors(store.load_france_sensors()))

    @bp.route("/france-revenus")
    def france_revenus_route():
        return jsonify(france_revenus(store.load_france_revenus(), request.args.get("year")))

    @bp.route("/idf-pollution/<kind>")
    def idf_pollution(kind):
        return jsonify(store.load_idf_pollution(kind))

    @bp.route("/idf-revenus")
    def idf_revenus_route():
        return jsonify(idf_revenus(
            store.load_idf_revenus(),
            annee=request.args.get("annee"),
            month_year=request.args.get("monthYear"),
            month=request.args.get("month"),
        ))

    return bp


def register_routes(server, store: AssetStore) -> None:
    """Attach the /api routes to a Flask app (Dash's `app.server`)."""
    server.register_blueprint(create_blueprint(store))
