"""
Demonstration of the nose cone generator.

This script shows how to:
1. Load a cone profile
2. Inspect the derived geometry
3. Build the spiral toolpath
4. Export Marlin G-code
"""

from pathlib import Path

from nosecone.core.config import ConfigManager
from nosecone.postprocessor import MarlinPostProcessor, PostProcessorConfig
from nosecone.slicing.builder import ToolpathBuilder
from nosecone.slicing.toolpath import EventType


def main():
    """Run nose cone demonstration."""
    print("=" * 60)
    print("Nose Cone Generator Demo")
    print("=" * 60)

    repo_dir = Path(__file__).parent.parent
    output_gcode = Path(__file__).parent / "lv_haack.gcode"

    # 1. Load profile
    print("\n1. Loading profile: lv_haack")
    params = ConfigManager(repo_dir / "config").get_profile("lv_haack")
    print(f"   [OK] Shape: {params.shape} (C={params.shape_parameter})")
    print(f"   [OK] Diameter: {params.diameter:.2f} mm")
    print(f"   [OK] Layer height: {params.layer_height} mm")

    # 2. Derived geometry
    print("\n2. Derived geometry")
    builder = ToolpathBuilder(params)
    layout = builder.layout
    print(f"   [OK] Wall centre radius: {layout.radius:.3f} mm")
    print(f"   [OK] Cone height: {layout.cone_height:.2f} mm")
    print(f"   [OK] Layers: {layout.cylinder_layer_count} base + {layout.cone_layer_count} cone")
    print(f"   [OK] Brim rings: {len(builder.brim_radii()) if params.brim is not None else 0}")

    # 3. Build toolpath
    print("\n3. Building spiral toolpath")
    toolpath = builder.build()
    prints = toolpath.get_events_by_type(EventType.PRINT)
    low, high = toolpath.get_bounds()
    print(f"   [OK] {len(toolpath)} events, {len(prints)} print moves")
    print(f"   [OK] Print length: {toolpath.get_print_length() / 1000:.2f} m")
    print(f"   [OK] Filament: {toolpath.get_filament_used() / 1000:.3f} m")
    print(f"   [OK] Height: {low.z:.2f} to {high.z:.2f} mm")

    # 4. Generate G-code
    print("\n4. Generating G-code")
    gcode = MarlinPostProcessor(PostProcessorConfig()).generate(toolpath, params)
    output_gcode.write_text(gcode, encoding="utf-8")
    print(f"   [OK] Wrote {len(gcode.splitlines())} lines to {output_gcode.name}")

    print("\n" + "=" * 60)
    print("Demo complete")
    print("=" * 60)


if __name__ == "__main__":
    main()
