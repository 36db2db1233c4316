"""Lightweight typing helpers shared by Mongo-backed repositories."""

from typing import Any, Dict, Mapping

MongoDocument = Mapping[str, Any]
MutableDocument = Dict[str, Any]
