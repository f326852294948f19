"""Feature modules: QR codes, commissions and settlement"""
