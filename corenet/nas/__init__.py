"""5G NAS message encoding and decoding for registration, NAS transport and PDU sessions."""