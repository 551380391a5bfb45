import pandas as pd
from .errors import ApiError

ALLOWED_EXTENSIONS = {'csv', 'xls', 'xlsx'}


def allowed_file(file):
    return bool(file and file.filename) and '.' in file.filename and \
        file.filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def read_spreadsheet(file, excel_skiprows=0, header=0):
    """
    Load an uploaded CSV or Excel file into a DataFrame with every cell as text.

    `excel_skiprows` drops banner rows that spreadsheet templates put above the data.
    """
    if not allowed_file(file):
        raise ApiError.bad_request("Unsupported file format. Use CSV or Excel.")

    ext = file.filename.rsplit('.', 1)[1].lower()
    try:
        if ext == 'csv':
            df = pd.read_csv(file, dtype=str, header=header)
        else:
            df = pd.read_excel(file, dtype=str, header=header, skiprows=excel_skiprows)
    except (ValueError, OSError, pd.errors.ParserError) as e:
        raise ApiError.bad_request(f"Failed to read file: {e}")

    df = df.dropna(how="all")
    return df.fillna("")


def cell(row, key):
    value = row.get(key, "")
    return str(value).strip() if value is not None else ""


def is_excel(file):
    return file.filename.rsplit('.', 1)[1].lower() in ('xls', 'xlsx')


def parse_date_cell(value):
    if not value:
        return None
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()
