from typing import Optional

# Custom Exceptions
class ChartAnalysisError(Exception):
    status_code = 500

    def __init__(self, message: str = "Chart analysis failed", detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class ChartNotRecognizedError(ChartAnalysisError):
    """The uploaded image is not a financial trading chart."""
    status_code = 422


class ImageQualityError(ChartAnalysisError):
    """The chart is recognisable but too blurry or cropped to read."""
    status_code = 422


class ChartExtractionError(ChartAnalysisError):
    status_code = 422


class LLMServiceError(ChartAnalysisError):
    status_code = 503
