"""cfnpreview -- preview a CloudFormation template against a live stack."""

__version__ = "0.3.0"
