"""
Marlin G-code post processor.

Produces G-code for Marlin-based FDM printers, with Cura-style ``;LAYER:``
and ``;TYPE:`` comments so slicer previews can display the spiral layer by
layer. Extrusion is absolute (M82); ``E`` values are the cumulative feed of
the toolpath.
"""

import datetime
from typing import List, Optional

from nosecone.core.config import NoseConeParameters
from nosecone.postprocessor.base import PointData, PostProcessorBase, PostProcessorConfig
from nosecone.slicing.toolpath import Toolpath

PRIME_RETRACT = 6.5  # mm of filament pulled back after the nozzle wipe
LIFT_OFF_RETRACT = 2.0  # mm per retract move at the end of the print
LIFT_OFF_RAISE = 10.0  # mm


def fmt(value: float, decimals: int = 4) -> str:
    """Format a float for G-code, stripping trailing zeros."""
    text = f"{value:.{decimals}f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


class MarlinPostProcessor(PostProcessorBase):
    """Post processor for Marlin firmware (``;FLAVOR:Marlin``)."""

    def __init__(self, config: Optional[PostProcessorConfig] = None):
        super().__init__(config)
        self._feed: Optional[float] = None

    def generate(self, toolpath: Toolpath, params: NoseConeParameters) -> str:
        self._feed = None
        return super().generate(toolpath, params)

    def comment(self, text: str) -> str:
        return f"{self.config.comment_prefix}{text}"

    def header(self, toolpath: Toolpath, params: NoseConeParameters) -> List[str]:
        lines = [self.comment("FLAVOR:Marlin")]
        if self.config.include_timestamp:
            lines.append(self.comment(f"Generated: {datetime.datetime.now():%Y-%m-%d %H:%M:%S}"))
        lines += [
            self.comment(f"Layer height: {params.layer_height}"),
            self.comment(f"Generated with {self.config.program_name}"),
            self.comment(f"Diameter: {params.diameter}"),
            self.comment(f"Height Ratio: {params.height_ratio}"),
            self.comment(f"Shape: {toolpath.metadata.get('shape', params.shape)}"),
            self.comment(f"Shape Parameter: {params.shape_parameter}"),
            self.comment(f"Wall Thickness: {params.wall_thickness}"),
            self.comment(f"Base Height: {params.base_height}"),
            self.comment(f"Resolution: {params.resolution}"),
            self.comment(f"Filament Diameter: {params.filament_diameter}"),
            self.comment(f"Bed Temperature: {params.bed_temperature}"),
            self.comment(f"Extruder Temperature: {params.extruder_temperature}"),
            "G21 ; millimeter units",
            "M149 C ; temperatures in Celsius",
            f"M140 S{fmt(params.bed_temperature, 1)} ; heat the bed",
            "M105",
            f"M190 S{fmt(params.bed_temperature, 1)} ; wait for the bed",
            f"M104 S{fmt(params.extruder_temperature, 1)} ; heat the hot end",
            "M105",
            f"M109 S{fmt(params.extruder_temperature, 1)} ; wait for the hot end",
            "M82 ; absolute extrusion mode",
            "G92 E0 ; reset extruder",
            "G28 ; auto home all axes",
            "G29 ; auto bed level",
        ]
        total_layers = toolpath.metadata.get("total_layers")
        if total_layers is not None:
            lines.append(self.comment(f"LAYER_COUNT:{total_layers}"))
        return lines

    def priming_code(self, params: NoseConeParameters) -> List[str]:
        return [
            "G1 Z2 F3000 ; move Z up a little to protect the bed",
            "G1 X0.1 Y20 Z0.3 F5000 ; move to start position",
            "G1 X0.1 Y200 Z0.3 F1500 E15 ; draw the first line",
            "G1 X0.4 Y200 Z0.3 F5000 ; move to side a little",
            "G1 X0.4 Y20 Z0.3 F1500 E30 ; draw the second line",
            "G92 E0 ; reset extruder",
            "G1 Z2 F3000 ; move Z up a little to protect the bed",
            "G1 X5 Y20 Z0.3 F5000 ; move over to prevent blob squish",
            "G92 E0 ; reset extruder",
            f"G1 F1500 E-{fmt(PRIME_RETRACT)}",
        ]

    def first_layer_code(self, params: NoseConeParameters) -> List[str]:
        self._feed = 1500.0
        return ["G1 F1500 E0 ; unretract"]

    def lift_off_code(self, params: NoseConeParameters) -> List[str]:
        self._feed = None
        return [
            "G91 ; relative positioning",
            f"G1 E-{fmt(LIFT_OFF_RETRACT)} F2700 ; retract filament a bit",
            f"G1 E-{fmt(LIFT_OFF_RETRACT)} Z{fmt(LIFT_OFF_RAISE)} F2400 ; retract and raise Z",
            "G1 X5 Y5 F3000",
            "G90 ; absolute positioning",
            f"G1 X0 Y{fmt(params.build_plate_depth)} ; present print",
            "M107 ; turn off fan",
            "M104 S0 ; turn off hot end",
            "M140 S0 ; turn off bed",
            "M84 X Y E ; disable all steppers except Z",
        ]

    def footer(self, toolpath: Toolpath, params: NoseConeParameters) -> List[str]:
        return [self.comment(f"Filament used: {fmt(toolpath.get_filament_used() / 1000, 5)}m")]

    def layer_change_code(self, layer: int) -> List[str]:
        return [self.comment(f"LAYER:{layer}")]

    def feature_code(self, name: str) -> List[str]:
        return [self.comment(f"TYPE:{name}")]

    def fan_code(self, value: int) -> List[str]:
        if value <= 0:
            return ["M107"]
        return [f"M106 S{value}"]

    def travel_move(self, pt: PointData) -> List[str]:
        return [self._move("G0", pt, extrude=False)]

    def print_move(self, pt: PointData) -> List[str]:
        return [self._move("G1", pt, extrude=True)]

    def _move(self, code: str, pt: PointData, extrude: bool) -> str:
        decimals = self.config.position_decimals
        parts = [code]
        if pt.speed != self._feed:
            parts.append(f"F{fmt(pt.speed, 1)}")
            self._feed = pt.speed
        parts.append(f"X{fmt(pt.x, decimals)}")
        parts.append(f"Y{fmt(pt.y, decimals)}")
        parts.append(f"Z{fmt(pt.z, decimals)}")
        if extrude:
            parts.append(f"E{fmt(pt.e, self.config.extrusion_decimals)}")
        return " ".join(parts)
