"""
API configuration module.

Provides configuration for the HTTP upload service.
Open for extension through custom configurations.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import ssl


@dataclass
class ProxyConfig:
    """
    Proxy configuration.
    
    Supports HTTP and HTTPS proxies.
    """
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    
    def to_aiohttp_proxy(self) -> Optional[str]:
        """Convert to aiohttp proxy format."""
        if not self.url:
            return None
        
        if self.username and self.password:
            if '://' in self.url:
                protocol, rest = self.url.split('://', 1)
                return f"{protocol}://{self.username}:{self.password}@{rest}"
        
        return self.url


@dataclass
class SSLConfig:
    """SSL/TLS configuration."""
    verify: bool = True
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    check_hostname: bool = True
    
    def create_ssl_context(self):
        """Create SSL context from configuration (False disables verification)."""
        if not self.verify:
            return False
        
        context = ssl.create_default_context()
        
        if self.ca_file:
            context.load_verify_locations(self.ca_file)
        
        if self.cert_file:
            context.load_cert_chain(
                self.cert_file,
                keyfile=self.key_file
            )
        
        context.check_hostname = self.check_hostname
        
        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.
    
    Timeouts belong to the service, the engine itself never times out.
    """
    total: float = 300.0  # Whole request, including the chunk body
    connect: float = 30.0
    sock_read: float = 60.0
    sock_connect: float = 30.0
    
    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
            sock_connect=self.sock_connect
        )


@dataclass
class RetryConfig:
    """
    Retry configuration.
    
    Controls how the HTTP service retries transient failures.
    Upload sessions never retry on their own.
    """
    max_retries: int = 3
    base_delay: float = 0.5
    max_delay: float = 16.0
    exponential_base: float = 2.0
    retry_on_statuses: tuple = (500, 502, 503, 504)
    
    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt number."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)
    
    @classmethod
    def disabled(cls) -> 'RetryConfig':
        """Create a configuration that never retries."""
        return cls(max_retries=0)


@dataclass
class APIConfig:
    """
    Complete API configuration.
    
    Centralizes all configuration options for the HTTP upload service.
    """
    user_agent: str = 'driveuploader/1.0.0'
    
    # Sent as "Authorization: Bearer <token>" when set
    auth_token: Optional[str] = None
    
    keepalive: bool = True
    
    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    
    extra_headers: Dict[str, str] = field(default_factory=dict)
    
    log_level: int = 20  # logging.INFO
    
    limit_per_host: int = 10
    limit: int = 100
    
    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()
    
    @classmethod
    def with_proxy(cls, proxy_url: str, **kwargs) -> 'APIConfig':
        """Create configuration with proxy."""
        return cls(
            proxy=ProxyConfig(url=proxy_url),
            **kwargs
        )
    
    @classmethod
    def insecure(cls, **kwargs) -> 'APIConfig':
        """Create configuration with SSL verification disabled."""
        return cls(
            ssl=SSLConfig(verify=False, check_hostname=False),
            **kwargs
        )
    
    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
            'force_close': not self.keepalive,
        }
    
    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }
        if self.auth_token:
            headers['Authorization'] = f"Bearer {self.auth_token}"
        
        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
