from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# wire format is camelCase (isDone, ownerId, createdAt); python side stays snake_case
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
