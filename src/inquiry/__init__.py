from src.inquiry.broker import InquiryBroker, InquiryIdGenerator, InquiryStore

__all__ = [
    "InquiryBroker",
    "InquiryIdGenerator",
    "InquiryStore",
]
