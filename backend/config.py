import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    # Upper bound on the DDL text accepted by the import manager (characters)
    SQL_IMPORT_MAX_LENGTH = int(os.environ.get('SQL_IMPORT_MAX_LENGTH', 5_000_000))

    # Placeholder grid for imported entities, before any layout pass
    LAYOUT_ORIGIN_X = int(os.environ.get('LAYOUT_ORIGIN_X', 100))
    LAYOUT_ORIGIN_Y = int(os.environ.get('LAYOUT_ORIGIN_Y', 100))
    LAYOUT_STEP_X = int(os.environ.get('LAYOUT_STEP_X', 300))
    LAYOUT_STEP_Y = int(os.environ.get('LAYOUT_STEP_Y', 250))
    LAYOUT_MAX_X = int(os.environ.get('LAYOUT_MAX_X', 900))

    # VARCHAR length that does not produce a Size validation
    DEFAULT_STRING_LENGTH = int(os.environ.get('DEFAULT_STRING_LENGTH', 255))
