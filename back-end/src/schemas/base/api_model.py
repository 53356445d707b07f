from pydantic import ConfigDict
from pydantic.alias_generators import to_camel


# Request/response schemas speak camelCase on the wire and accept field names too
CAMEL_CASE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)
