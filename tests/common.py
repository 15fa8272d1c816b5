KEY_ONE = (1).to_bytes(32, "big")
KEY_ONE_ADDRESS = "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"
KEY_TWO = (2).to_bytes(32, "big")
KEY_TWO_ADDRESS = "0x2B5AD5c4795c026514f8317c7a215E218DcCD6cF"

SECPK1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
