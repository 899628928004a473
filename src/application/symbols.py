"""
Static lookup tables used before (or instead of) a live provider search.
"""

from src.domain.entities.memo import CompanyMatch

# Lower-cased company name → ticker.
KNOWN_SYMBOLS: dict[str, str] = {
    "apple": "AAPL",
    "microsoft": "MSFT",
    "google": "GOOGL",
    "alphabet": "GOOGL",
    "amazon": "AMZN",
    "meta": "META",
    "facebook": "META",
    "tesla": "TSLA",
    "nvidia": "NVDA",
    "netflix": "NFLX",
    "reliance": "RELIANCE.NS",
    "reliance industries": "RELIANCE.NS",
    "tcs": "TCS.NS",
    "tata consultancy": "TCS.NS",
    "infosys": "INFY.NS",
    "hdfc bank": "HDFCBANK.NS",
    "icici bank": "ICICIBANK.NS",
    "bharti airtel": "BHARTIARTL.NS",
    "itc": "ITC.NS",
    "itc limited": "ITC.NS",
}

STATIC_COMPANIES: tuple[CompanyMatch, ...] = (
    CompanyMatch("Apple", "AAPL", "NASDAQ"),
    CompanyMatch("Microsoft", "MSFT", "NASDAQ"),
    CompanyMatch("Google", "GOOGL", "NASDAQ"),
    CompanyMatch("Amazon", "AMZN", "NASDAQ"),
    CompanyMatch("Tesla", "TSLA", "NASDAQ"),
    CompanyMatch("NVIDIA", "NVDA", "NASDAQ"),
    CompanyMatch("Meta", "META", "NASDAQ"),
    CompanyMatch("Netflix", "NFLX", "NASDAQ"),
    CompanyMatch("Reliance Industries", "RELIANCE.NS", "NSE"),
    CompanyMatch("Tata Consultancy", "TCS.NS", "NSE"),
    CompanyMatch("HDFC Bank", "HDFCBANK.NS", "NSE"),
    CompanyMatch("Infosys", "INFY.NS", "NSE"),
    CompanyMatch("ICICI Bank", "ICICIBANK.NS", "NSE"),
    CompanyMatch("Bharti Airtel", "BHARTIARTL.NS", "NSE"),
    CompanyMatch("ITC Limited", "ITC.NS", "NSE"),
)
