from pydantic import BaseModel, Field


class GoalUpdate(BaseModel):
    """Target number of finished books for the current month."""
    target: int = Field(..., ge=0)
