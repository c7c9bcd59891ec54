from sqlmodel import SQLModel

# Import all models here so their tables are registered in the metadata
from app.models import *

# Get metadata from SQLModel (it auto-creates tables in it)
meta = SQLModel.metadata
