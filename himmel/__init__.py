__all__ = [
    '__name__',
    '__version__',
    '__author__',
    '__credits__',
    '__license__',
    '__status__',
]


__name__ = 'himmel'
__version__ = '0.1.0'
__author__ = 'Himmel Developers'
__credits__ = ['Himmel Developers']
__license__ = 'MIT'
__status__ = 'Development'
