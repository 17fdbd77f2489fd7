HELP_TEXT = '''
==================== HELP =====================
Inventory:
  l                            List all inventory records (short table)
  g -id ID                     Show one component by Component ID, Issue No or Storage No
  p                            List pending requests (one row per transaction)
  i                            Submit an issue request (interactive)
  st                           Submit a storage request (interactive)
  u -id ID [-t issue|storage]  Replace a transaction with a new batch (interactive)
  d -id ID                     Delete every record matching ID

Approval (admin login required):
  ap -id ID -s SIGNATURE       Approve a request
  rj -id ID -m REASON          Reject a request

Accounts:
  login -u USER [-admin]       Log in (password is prompted)
  signup -u USER [-admin]      Register a new account
  logout                       Forget the current login
  who                          Show the current login

Archive:
  fl                           List archived files
  fu -p PATH [-n SCIENTIST] [-m DESC]
                               Upload a file to the archive
  fr -o OLD -n NEW             Rename an archived file
  fd -n NAME                   Delete an archived file

Utilities:
  f                            List issue and storage record fields
  x                            Exit program

IDs may be tagged to match a single field:
  issue:ISS-1   storage:ST-7   component:CMP-004
==============================================='''

# Common columns
COMPONENT_ID = "Component ID"
NAME = "Name"
PART_NO = "Part No"
PART_DESCRIPTION = "Part Description"
TYPE = "Type"
STATUS = "Status"
DATE = "Date"
SYSTEM_MANAGER = "System Manager"
SERIAL_NO = "Serial No"
SO_NO = "SO No"
STORAGE_TEMPERATURE = "Storage Temperature"
SUBMITTED_BY = "Submitted By"

# Issued components
ISSUED_TO = "Issued To"
ISSUE_NO = "Issue No"
ISSUE_DATE = "Issue Date"
REQUEST_TEXT = "Request Text"
ISSUE_FOR = "Issue For"
SNO_SO = "S.No as per SO"
MANUFACTURER = "Manufacturer"
QUALITY_GRADE = "Quality Grade"
SUB_SYSTEM = "Sub System"
QUANTITY_EACH = "Quantity Each"
TOTAL_QUANTITY = "Total Quantity"
SO_PDF = "SO PDF"

# Stored components
STORAGE_NO = "Storage No"
STORAGE_DATE = "Storage Date"
SO_NUMBER = "SO Number"
SNO_PO = "S.No as per PO"
GRADE = "Grade"
STORAGE_QUANTITY = "Storage Quantity"
RELATIVE_HUMIDITY = "Relative Humidity"
STORAGE_DATA = "Storage Data"
DELIVERY_DATE = "Delivery Date"

# Audit columns added on transition
APPROVED_BY = "Approved By"
APPROVAL_DATE = "Approval Date"
APPROVAL_SIGNATURE = "Approval Signature"
REJECTION_REASON = "Rejection Reason"
REJECTION_DATE = "Rejection Date"

ISSUE_FIELDS = [
    COMPONENT_ID, NAME, PART_NO, PART_DESCRIPTION, TYPE, STATUS, DATE,
    ISSUED_TO, ISSUE_NO, ISSUE_DATE, REQUEST_TEXT, ISSUE_FOR, SYSTEM_MANAGER,
    SERIAL_NO, SNO_SO, MANUFACTURER, QUALITY_GRADE, SUB_SYSTEM,
    QUANTITY_EACH, TOTAL_QUANTITY, SO_NO, SO_PDF, STORAGE_TEMPERATURE,
    SUBMITTED_BY
]

STORAGE_FIELDS = [
    COMPONENT_ID, NAME, PART_NO, PART_DESCRIPTION, TYPE, STATUS, DATE,
    STORAGE_NO, STORAGE_DATE, SO_NUMBER, SYSTEM_MANAGER, SERIAL_NO, SNO_PO,
    GRADE, STORAGE_QUANTITY, STORAGE_TEMPERATURE, RELATIVE_HUMIDITY,
    STORAGE_DATA, DELIVERY_DATE, SO_NO, SUBMITTED_BY
]

AUDIT_FIELDS = [
    APPROVED_BY, APPROVAL_DATE, APPROVAL_SIGNATURE,
    REJECTION_REASON, REJECTION_DATE
]
