"""Export JSON schemas for SurveyDraft and the activity event union."""

import json
from pathlib import Path

from backend.app.models import SurveyDraft, activity_event_adapter


def main(schemas_dir: Path = Path("docs/schemas")) -> None:
    """Export schemas to docs/schemas/."""
    schemas_dir.mkdir(parents=True, exist_ok=True)

    # SurveyDraft - request body for publish and edit-save
    draft_path = schemas_dir / "SurveyDraft.schema.json"
    with open(draft_path, "w") as f:
        json.dump(SurveyDraft.model_json_schema(), f, indent=2)
    print(f"Exported SurveyDraft schema to {draft_path}")

    # ActivityEvent - webhook payload, discriminated on "type"
    event_path = schemas_dir / "ActivityEvent.schema.json"
    with open(event_path, "w") as f:
        json.dump(activity_event_adapter.json_schema(), f, indent=2)
    print(f"Exported ActivityEvent schema to {event_path}")


if __name__ == "__main__":
    main()
