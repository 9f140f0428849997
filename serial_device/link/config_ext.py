from pydantic import BaseModel, Field
from functools import lru_cache


class DriverCfg(BaseModel):
    poll_timeout:       float = Field(0.100)   # one readiness wait inside read()
    max_polls:          int   = Field(100)     # read() gives up after this many waits
    chunk_size:         int   = Field(255)
    response_capacity:  int   = Field(255)     # raw bytes kept per response
    read_bytes_timeout: float = Field(0.010)
    write_timeout:      float = Field(1.0)
    terminator:         int   = 13             # CR closes every command
    encoding:           str   = "ascii"


@lru_cache
def get() -> DriverCfg:
    return DriverCfg()
