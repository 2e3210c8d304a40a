"""Routing request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.domain import Waypoint
from ..services.routing.models import TSPConfig


class WaypointModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    lat: float
    lng: float
    is_start_point: bool = False
    is_end_point: bool = False
    visit_order: Optional[int] = None

    def to_domain(self) -> Waypoint:
        return Waypoint(
            id=self.id,
            name=self.name,
            lat=self.lat,
            lng=self.lng,
            is_start_point=self.is_start_point,
            is_end_point=self.is_end_point,
            visit_order=self.visit_order,
        )


class TSPConfigModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start_point_id: Optional[str] = None
    end_point_id: Optional[str] = None
    algorithm: Literal["nearest_neighbor", "2opt", "genetic"] = Field(
        default="2opt",
        description="'genetic' is not implemented yet and runs the 2-opt solver.",
    )
    max_iterations: Optional[int] = Field(None, ge=1)
    collection_radius: float = Field(20.0, ge=0, description="Collection area radius in metres.")
    time_limit_seconds: Optional[float] = Field(None, gt=0)

    def to_domain(self) -> TSPConfig:
        return TSPConfig(
            start_point_id=self.start_point_id,
            end_point_id=self.end_point_id,
            algorithm=self.algorithm,
            max_iterations=self.max_iterations,
            collection_radius=self.collection_radius,
            time_limit_seconds=self.time_limit_seconds,
        )


class PointsRequest(BaseModel):
    points: List[WaypointModel]

    def to_domain(self) -> list[Waypoint]:
        return [point.to_domain() for point in self.points]


class KMLParseRequest(BaseModel):
    content: str = Field(..., description="Raw KML document.")


class PointsResponse(BaseModel):
    points: List[WaypointModel]
    count: int


class CleanupRequest(PointsRequest):
    min_distance: Optional[float] = Field(None, ge=0, description="Minimum spacing in metres.")


class CleanupResponse(PointsResponse):
    removed: int


class TSPRequest(PointsRequest):
    config: TSPConfigModel = Field(default_factory=TSPConfigModel)


class ValidationResponse(BaseModel):
    errors: List[str]
    corrections: List[str]
    corrected_config: TSPConfigModel


class TSPSolutionResponse(BaseModel):
    route: List[WaypointModel]
    total_distance: float
    total_duration: float
    iterations: int
    execution_time: float
    metadata: dict
    config: TSPConfigModel


class DirectionModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    text: str
    distance: str
    duration: str


class ProcessRouteResponse(BaseModel):
    distance: float
    duration: float
    confidence: float
    method: str
    geometry: dict
    directions: List[DirectionModel]
    info: str
    original_count: int
    processed_count: int
    warnings: List[str]
