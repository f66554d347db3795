"""Text presentation of block database query results."""