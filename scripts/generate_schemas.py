"""Generate JSON schemas for the graph configuration and save to schemas/ directory."""

import json
import sys
from pathlib import Path

from crosswire.kernel.transform import RawGraphConfig
from crosswire.oapp.types import OAppEdgeConfig, OAppNodeConfig

MODELS = {
    "graph_config": RawGraphConfig,
    "oapp_node_config": OAppNodeConfig,
    "oapp_edge_config": OAppEdgeConfig,
}


def generate_schemas(schemas_dir: Path):
    """Write one ``<name>.schema.json`` per model; returns the written paths."""
    schemas_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name, model in MODELS.items():
        path = schemas_dir / f"{name}.schema.json"
        schema = model.model_json_schema(by_alias=True)
        path.write_text(json.dumps(schema, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        written.append(path)
    return written


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(__file__).parent.parent / "schemas"
    for path in generate_schemas(out):
        print(f"Generated: {path}")
